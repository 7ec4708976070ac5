from django.core.management.base import BaseCommand
from django.contrib.auth.models import Group, Permission


class Command(BaseCommand):
    help = 'Create the user groups used for access control: Admin, Finance, FinanceManager'

    def handle(self, *args, **options):
        groups_config = [
            {
                'name': 'Admin',
                'description': 'Owners and developers - full system access including finance decisions',
            },
            {
                'name': 'Finance',
                'description': 'Bookkeepers - can record transactions and open management requests',
                'app_labels': ['finance'],
            },
            {
                'name': 'FinanceManager',
                'description': 'Approves, returns or rejects finance management requests',
                'app_labels': ['finance'],
            },
        ]

        created_count = 0
        existing_count = 0

        for group_config in groups_config:
            group, created = Group.objects.get_or_create(name=group_config['name'])

            if created:
                self.stdout.write(self.style.SUCCESS(f'✓ Created group: {group_config["name"]}'))
                created_count += 1
            else:
                self.stdout.write(f'  Group already exists: {group_config["name"]}')
                existing_count += 1

            if group_config['name'] == 'Admin':
                group.permissions.set(Permission.objects.all())
                self.stdout.write('  Added all permissions to Admin group')
            else:
                permissions = Permission.objects.filter(content_type__app_label__in=group_config['app_labels'])
                group.permissions.set(permissions)
                self.stdout.write(f'  Added finance permissions to {group_config["name"]} group')

        self.stdout.write(self.style.SUCCESS(
            f'\nCompleted: {created_count} groups created, {existing_count} groups already existed'
        ))
