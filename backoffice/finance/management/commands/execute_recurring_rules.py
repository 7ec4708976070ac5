from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone
from backoffice.core.models import User
from backoffice.finance.models import RecurringRule
from backoffice.finance.services import execute_recurring_rules, rule_today


class Command(BaseCommand):
    help = 'Create the transactions of every due recurring rule (meant to run daily from cron)'

    def add_arguments(self, parser):
        parser.add_argument(
            '--dry-run',
            action='store_true',
            help='List the rules that are due without creating transactions',
        )
        parser.add_argument(
            '--user',
            type=str,
            help='Username recorded as creator of the generated transactions',
        )

    def handle(self, *args, **options):
        user = None
        if options.get('user'):
            user = User.objects.filter(username=options['user']).first()
            if user is None:
                raise CommandError(f"User '{options['user']}' not found")

        if options['dry_run']:
            now = timezone.now()
            due = 0
            for rule in RecurringRule.objects.filter(status='active').order_by('id'):
                run_date = rule.next_run_date or rule.start_date
                if run_date <= rule_today(rule, now):
                    due += 1
                    self.stdout.write(f'  Rule #{rule.id} ({rule.frequency}) due for {run_date}')
            self.stdout.write(self.style.WARNING(f'Dry run: {due} rule(s) due, nothing created'))
            return

        result = execute_recurring_rules(user=user)
        for error in result['errors']:
            self.stdout.write(self.style.ERROR(
                f"  Rule #{error['rule_id']} failed for {error['scheduled_for']}: {error['error']}"
            ))
        self.stdout.write(self.style.SUCCESS(
            f"Processed {result['processed']} rule(s): created {result['created_transactions']} "
            f"transaction(s), skipped {result['skipped']}"
        ))
