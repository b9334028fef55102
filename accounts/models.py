from django.contrib.auth.models import AbstractUser
from django.db import models


class User(AbstractUser):
    """
    Custom User model extending Django's AbstractUser.

    Every account in the co-op has exactly one type: admins and staff run the
    back office, customers place orders, members supply stock and logistics
    deliver approved orders.
    """

    class UserType(models.TextChoices):
        ADMIN = 'admin', 'Admin'
        STAFF = 'staff', 'Staff'
        CUSTOMER = 'customer', 'Customer'
        MEMBER = 'member', 'Member'
        LOGISTIC = 'logistic', 'Logistic'

    type = models.CharField(
        max_length=20,
        choices=UserType.choices,
        default=UserType.CUSTOMER,
        db_index=True,
        help_text="Account type in the co-op"
    )

    contact_number = models.CharField(
        max_length=20,
        blank=True,
        default='',
        help_text="Contact number (e.g. 09171234567)"
    )

    # Logistics coverage
    assigned_area = models.CharField(
        max_length=150,
        blank=True,
        default='',
        help_text="Delivery area covered (logistic users)"
    )

    active = models.BooleanField(
        default=True,
        help_text="Inactive members/logistics cannot be assigned new work"
    )

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)
    last_login_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'users'
        verbose_name = 'User'
        verbose_name_plural = 'Users'
        indexes = [
            models.Index(fields=['type', 'active'], name='users_type_active_idx'),
        ]

    def __str__(self):
        return f"{self.get_full_name() or self.username} ({self.get_type_display()})"

    @property
    def display_name(self):
        return self.get_full_name() or self.username

    @property
    def is_admin_or_staff(self):
        return self.type in (self.UserType.ADMIN, self.UserType.STAFF)

    @property
    def is_customer(self):
        return self.type == self.UserType.CUSTOMER

    @property
    def is_member(self):
        return self.type == self.UserType.MEMBER

    @property
    def is_logistic(self):
        return self.type == self.UserType.LOGISTIC
