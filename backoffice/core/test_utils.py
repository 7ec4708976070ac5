"""
Test utilities and factories for creating test data
"""
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken
from backoffice.core.models import UserType
from backoffice.catalog.models import ProductType, Product, Addon, ProductAddon
from backoffice.sales_channels.models import PaymentMethod, Channel, ChannelCommission
from backoffice.bookings.models import Booking
from backoffice.bookings.services import apply_pricing
from backoffice.finance.models import Account, Category, Vendor, Client, Transaction
from backoffice.venues.models import Venue, VenueCompensationTerm, NightReport, NightReportVenue
from decimal import Decimal
from datetime import date
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', is_staff=False, is_superuser=False,
                    groups=None, **extra):
        """Create a test user, optionally inside named groups"""
        if not username:
            username = f'testuser_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        user = User.objects.create_user(
            username=username,
            email=email,
            password=password,
            is_staff=is_staff,
            is_superuser=is_superuser,
            **extra
        )
        for group_name in groups or []:
            group, _ = Group.objects.get_or_create(name=group_name)
            user.groups.add(group)
        return user

    @staticmethod
    def create_user_type(name=None):
        if not name:
            name = f'Type_{TestDataFactory.random_string(6)}'
        return UserType.objects.create(name=name, slug=name.lower())

    @staticmethod
    def create_product_type(name=None):
        """Create a test product type"""
        if not name:
            name = f'ProductType_{TestDataFactory.random_string(6)}'
        return ProductType.objects.create(name=name, description=f'Test product type {name}')

    @staticmethod
    def create_product(name=None, product_type=None, price=None, status=True):
        """Create a test product"""
        if not name:
            name = f'Product_{TestDataFactory.random_string(6)}'
        if not product_type:
            product_type = TestDataFactory.create_product_type()
        if price is None:
            price = Decimal('100.00')
        return Product.objects.create(name=name, product_type=product_type, price=price, status=status)

    @staticmethod
    def create_addon(name=None, base_price=None, is_active=True):
        if not name:
            name = f'Addon_{TestDataFactory.random_string(6)}'
        if base_price is None:
            base_price = Decimal('20.00')
        return Addon.objects.create(name=name, base_price=base_price, is_active=is_active)

    @staticmethod
    def create_product_addon(product, addon, max_per_attendee=None, price_override=None):
        return ProductAddon.objects.create(
            product=product,
            addon=addon,
            max_per_attendee=max_per_attendee,
            price_override=price_override
        )

    @staticmethod
    def create_payment_method(name=None):
        if not name:
            name = f'Payment_{TestDataFactory.random_string(6)}'
        return PaymentMethod.objects.create(name=name)

    @staticmethod
    def create_channel(name=None, payment_method=None):
        """Create a test sales channel"""
        if not name:
            name = f'Channel_{TestDataFactory.random_string(6)}'
        return Channel.objects.create(name=name, payment_method=payment_method)

    @staticmethod
    def create_commission(channel, rate, valid_from, valid_to=None):
        """Create a commission window for a channel"""
        return ChannelCommission.objects.create(
            channel=channel,
            rate=Decimal(rate),
            valid_from=valid_from,
            valid_to=valid_to
        )

    @staticmethod
    def create_booking(product=None, channel=None, experience_date=None, platform='manual',
                       platform_booking_id=None, status='confirmed', party_size_total=2,
                       base_amount=None, **extra):
        """Create a priced test booking"""
        if not platform_booking_id:
            platform_booking_id = f'BK-{TestDataFactory.random_string(8)}'
        if experience_date is None:
            experience_date = date.today()
        if base_amount is None:
            base_amount = Decimal('100.00')
        booking = Booking(
            platform=platform,
            platform_booking_id=platform_booking_id,
            product=product,
            channel=channel,
            experience_date=experience_date,
            status=status,
            party_size_total=party_size_total,
            base_amount=base_amount,
            **extra
        )
        apply_pricing(booking)
        booking.save()
        return booking

    @staticmethod
    def create_account(name=None, currency='PLN', opening_balance_minor=0, account_type='bank'):
        """Create a test finance account"""
        if not name:
            name = f'Account_{TestDataFactory.random_string(6)}'
        return Account.objects.create(
            name=name,
            type=account_type,
            currency=currency,
            opening_balance_minor=opening_balance_minor
        )

    @staticmethod
    def create_category(name=None, kind='expense', parent=None):
        """Create a test finance category"""
        if not name:
            name = f'Category_{TestDataFactory.random_string(6)}'
        return Category.objects.create(name=name, kind=kind, parent=parent)

    @staticmethod
    def create_vendor(name=None, default_category=None):
        if not name:
            name = f'Vendor_{TestDataFactory.random_string(6)}'
        return Vendor.objects.create(name=name, default_category=default_category)

    @staticmethod
    def create_client(name=None, default_category=None):
        if not name:
            name = f'Client_{TestDataFactory.random_string(6)}'
        return Client.objects.create(name=name, default_category=default_category)

    @staticmethod
    def create_transaction(account, kind='expense', amount_minor=10000, status='paid', tx_date=None,
                           category=None, counterparty=None, fx_rate=Decimal('1'), **extra):
        """Create a ledger row directly, bypassing the service rules"""
        if tx_date is None:
            tx_date = date.today()
        counterparty_type = 'none'
        if isinstance(counterparty, Vendor):
            counterparty_type = 'vendor'
        elif isinstance(counterparty, Client):
            counterparty_type = 'client'
        return Transaction.objects.create(
            kind=kind,
            date=tx_date,
            account=account,
            currency=account.currency,
            amount_minor=amount_minor,
            fx_rate=fx_rate,
            base_amount_minor=extra.pop('base_amount_minor', amount_minor),
            category=category,
            counterparty_type=counterparty_type,
            counterparty_id=counterparty.id if counterparty else None,
            status=status,
            **extra
        )

    @staticmethod
    def create_venue(name=None, allows_open_bar=False, sort_order=0, is_active=True):
        """Create a test venue"""
        if not name:
            name = f'Venue_{TestDataFactory.random_string(6)}'
        return Venue.objects.create(
            name=name,
            allows_open_bar=allows_open_bar,
            sort_order=sort_order,
            is_active=is_active
        )

    @staticmethod
    def create_compensation_term(venue, compensation_type='commission', rate_amount=None, rate_unit='per_person',
                                 valid_from=None, valid_to=None, currency_code='USD', is_active=True):
        """Create a compensation term; direction follows the type"""
        if rate_amount is None:
            rate_amount = Decimal('5.00')
        if valid_from is None:
            valid_from = date(2020, 1, 1)
        return VenueCompensationTerm.objects.create(
            venue=venue,
            compensation_type=compensation_type,
            direction='payable' if compensation_type == 'open_bar' else 'receivable',
            rate_amount=rate_amount,
            rate_unit=rate_unit,
            currency_code=currency_code,
            valid_from=valid_from,
            valid_to=valid_to,
            is_active=is_active
        )

    @staticmethod
    def create_night_report(leader, activity_date=None, lines=None):
        """Create a draft night report; lines are (venue, total_people, is_open_bar) tuples"""
        if activity_date is None:
            activity_date = date.today()
        report = NightReport.objects.create(leader=leader, activity_date=activity_date)
        for index, (venue, total_people, is_open_bar) in enumerate(lines or [], start=1):
            NightReportVenue.objects.create(
                report=report,
                order_index=index,
                venue=venue,
                venue_name=venue.name,
                total_people=total_people,
                is_open_bar=is_open_bar
            )
        return report


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user"""
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        """Remove authentication"""
        self.credentials()
