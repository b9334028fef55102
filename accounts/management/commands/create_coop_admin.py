"""
Management command to create (or reset) a co-op admin account.

Usage:
    python manage.py create_coop_admin --username admin --email admin@example.com --password secret
"""

from django.core.management.base import BaseCommand
from django.db import transaction
from accounts.models import User


class Command(BaseCommand):
    help = 'Creates or updates a co-op admin user'

    def add_arguments(self, parser):
        parser.add_argument('--username', default='admin')
        parser.add_argument('--email', default='admin@agricart.local')
        parser.add_argument('--password', required=True)

    def handle(self, *args, **options):
        username = options['username']
        email = options['email']
        password = options['password']

        try:
            with transaction.atomic():
                user = User.objects.filter(username=username).first()
                if user:
                    self.stdout.write(
                        self.style.WARNING(f'User {username} already exists.')
                    )
                    user.email = email
                    user.type = User.UserType.ADMIN
                    user.is_active = True
                    user.active = True
                    user.is_staff = True
                    user.set_password(password)
                    user.save()

                    self.stdout.write(
                        self.style.SUCCESS(f'✓ Updated existing user: {username}')
                    )
                else:
                    user = User.objects.create_user(
                        username=username,
                        email=email,
                        password=password,
                        first_name='Co-op',
                        last_name='Admin',
                        type=User.UserType.ADMIN,
                        is_staff=True,
                    )
                    self.stdout.write(
                        self.style.SUCCESS(f'✓ Created new user: {username}')
                    )

                self.stdout.write('\n' + '='*60)
                self.stdout.write(f'Username:  {user.username}')
                self.stdout.write(f'Email:     {user.email}')
                self.stdout.write(f'Type:      {user.get_type_display()}')
                self.stdout.write('='*60)
                self.stdout.write('\nPOST /api/auth/login/ with the username and password,')
                self.stdout.write('then send "Authorization: Bearer <access_token>".\n')

        except Exception as e:
            self.stdout.write(
                self.style.ERROR(f'Error creating user: {str(e)}')
            )
            raise
