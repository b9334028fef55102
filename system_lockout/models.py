"""
System Lockout Models

SystemSchedule holds one row per day describing the daily price-lock:
the system locks, an admin decides whether to keep prices or change them,
and customer access is restored once the decision is final.

SystemTracking holds scheduled "system down" events that trigger the lock.
"""

from datetime import timedelta

from django.conf import settings
from django.db import models
from django.utils import timezone


class SystemSchedule(models.Model):
    """Daily price-lock state."""

    class AdminAction(models.TextChoices):
        PENDING = 'pending', 'Pending'
        KEEP_PRICES = 'keep_prices', 'Keep Prices'
        PRICE_CHANGE = 'price_change', 'Price Change'

    class PriceChangeStatus(models.TextChoices):
        PENDING = 'pending', 'Pending'
        CANCELLED = 'cancelled', 'Cancelled'
        APPROVED = 'approved', 'Approved'

    system_date = models.DateField(unique=True)
    is_locked = models.BooleanField(default=False)
    admin_action = models.CharField(
        max_length=20,
        choices=AdminAction.choices,
        default=AdminAction.PENDING
    )
    price_change_status = models.CharField(
        max_length=20,
        choices=PriceChangeStatus.choices,
        null=True,
        blank=True
    )
    lockout_time = models.DateTimeField(null=True, blank=True)
    admin_action_time = models.DateTimeField(null=True, blank=True)
    price_change_action_time = models.DateTimeField(null=True, blank=True)
    admin_user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='system_schedule_actions'
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'system_schedule'
        ordering = ['-system_date']

    def __str__(self):
        state = 'locked' if self.is_locked else 'open'
        return f"{self.system_date} ({state}, {self.admin_action})"

    @classmethod
    def get_today_record(cls):
        return cls.objects.filter(system_date=timezone.localdate()).first()

    @classmethod
    def get_or_create_today_record(cls):
        record, _ = cls.objects.get_or_create(
            system_date=timezone.localdate(),
            defaults={
                'is_locked': False,
                'admin_action': cls.AdminAction.PENDING,
                'price_change_status': None,
            }
        )
        return record

    @classmethod
    def is_customer_lockout_active(cls):
        record = cls.get_today_record()
        return record.is_locked if record else False

    # State transitions

    def initiate_lockout(self):
        self.is_locked = True
        self.lockout_time = timezone.now()
        self.admin_action = self.AdminAction.PENDING
        self.price_change_status = None
        self.save()

    def keep_prices_as_is(self, admin):
        self.is_locked = False
        self.admin_action = self.AdminAction.KEEP_PRICES
        self.admin_action_time = timezone.now()
        self.admin_user = admin
        self.save()

    def apply_price_changes(self, admin):
        """Admin will change prices; the lock stays until they finish."""
        self.admin_action = self.AdminAction.PRICE_CHANGE
        self.admin_action_time = timezone.now()
        self.admin_user = admin
        self.price_change_status = self.PriceChangeStatus.PENDING
        self.save()

    def cancel_price_changes(self, admin):
        self.is_locked = False
        self.price_change_status = self.PriceChangeStatus.CANCELLED
        self.price_change_action_time = timezone.now()
        self.admin_user = admin
        self.save()

    def approve_price_changes(self, admin):
        self.is_locked = False
        self.price_change_status = self.PriceChangeStatus.APPROVED
        self.price_change_action_time = timezone.now()
        self.admin_user = admin
        self.save()

    # Predicates

    @property
    def is_admin_action_pending(self):
        return self.admin_action == self.AdminAction.PENDING

    @property
    def is_price_change_action_pending(self):
        return (
            self.admin_action == self.AdminAction.PRICE_CHANGE
            and self.price_change_status == self.PriceChangeStatus.PENDING
        )

    @property
    def is_system_ready_for_customers(self):
        if not self.is_locked:
            return True
        if self.admin_action == self.AdminAction.KEEP_PRICES:
            return True
        return (
            self.admin_action == self.AdminAction.PRICE_CHANGE
            and self.price_change_status in (
                self.PriceChangeStatus.CANCELLED,
                self.PriceChangeStatus.APPROVED,
            )
        )

    @property
    def can_take_action(self):
        return self.is_locked and self.is_admin_action_pending

    @property
    def next_action(self):
        if self.is_admin_action_pending:
            return 'admin_decision'
        if self.is_price_change_action_pending:
            return 'price_change_action'
        return None

    def lockout_message(self):
        if self.is_admin_action_pending:
            return (
                'System is temporarily unavailable while administrators review '
                'daily pricing updates. Please check back later.'
            )
        if self.is_price_change_action_pending:
            return (
                'System is temporarily unavailable while administrators finalize '
                'pricing changes. Please check back later.'
            )
        return 'System is temporarily unavailable. Please check back later.'


class SystemTrackingQuerySet(models.QuerySet):

    def system_down(self):
        return self.filter(action=SystemTracking.Action.SYSTEM_DOWN)

    def due(self, now=None):
        """Scheduled or active lockouts whose time has come."""
        return self.system_down().filter(
            status__in=[SystemTracking.Status.SCHEDULED, SystemTracking.Status.ACTIVE],
            scheduled_at__lte=now or timezone.now(),
        )


class SystemTracking(models.Model):
    """A scheduled system-down event."""

    class Status(models.TextChoices):
        SCHEDULED = 'scheduled', 'Scheduled'
        ACTIVE = 'active', 'Active'
        COMPLETED = 'completed', 'Completed'
        CANCELLED = 'cancelled', 'Cancelled'

    class Action(models.TextChoices):
        SYSTEM_DOWN = 'system_down', 'System Down'

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.SCHEDULED,
        db_index=True
    )
    action = models.CharField(
        max_length=30,
        choices=Action.choices,
        default=Action.SYSTEM_DOWN
    )
    scheduled_at = models.DateTimeField(db_index=True)
    executed_at = models.DateTimeField(null=True, blank=True)
    description = models.TextField(blank=True, default='')
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    objects = SystemTrackingQuerySet.as_manager()

    class Meta:
        db_table = 'system_tracking'
        ordering = ['scheduled_at']
        indexes = [
            models.Index(fields=['action', 'status', 'scheduled_at'], name='system_tracking_due_idx'),
        ]

    def __str__(self):
        return f"{self.get_action_display()} at {self.scheduled_at} ({self.status})"

    @classmethod
    def schedule_lockout(cls, scheduled_at, description=None, metadata=None):
        return cls.objects.create(
            status=cls.Status.SCHEDULED,
            action=cls.Action.SYSTEM_DOWN,
            scheduled_at=scheduled_at,
            description=description or 'Scheduled system lockout',
            metadata=metadata or {},
        )

    @classmethod
    def schedule_lockout_in_one_minute(cls, description=None, metadata=None):
        return cls.schedule_lockout(
            timezone.now() + timedelta(minutes=1),
            description or 'System lockout scheduled for 1 minute from now',
            metadata,
        )

    @classmethod
    def get_active_scheduled_lockouts(cls):
        return cls.objects.system_down().filter(
            status=cls.Status.SCHEDULED,
            scheduled_at__lte=timezone.now(),
        )

    @classmethod
    def has_active_scheduled_lockout(cls):
        return cls.get_active_scheduled_lockouts().exists()

    @classmethod
    def get_next_scheduled_lockout(cls):
        return cls.objects.system_down().filter(
            status=cls.Status.SCHEDULED,
            scheduled_at__gt=timezone.now(),
        ).order_by('scheduled_at').first()

    @classmethod
    def get_all_scheduled_lockouts(cls):
        return cls.objects.system_down().filter(
            status__in=[cls.Status.SCHEDULED, cls.Status.ACTIVE],
        ).order_by('scheduled_at')

    @classmethod
    def get_lockout_history(cls, limit=10):
        return cls.objects.system_down().filter(
            status__in=[cls.Status.COMPLETED, cls.Status.CANCELLED],
        ).order_by('-scheduled_at')[:limit]

    @classmethod
    def get_lockouts_requiring_admin_action(cls):
        return [lockout for lockout in cls.objects.due() if lockout.requires_admin_action()]

    # Instance transitions

    def execute(self):
        if self.status != self.Status.SCHEDULED:
            return False
        self.status = self.Status.ACTIVE
        self.executed_at = timezone.now()
        self.save(update_fields=['status', 'executed_at', 'updated_at'])
        return True

    def complete(self):
        if self.status not in (self.Status.ACTIVE, self.Status.SCHEDULED):
            return False
        self.status = self.Status.COMPLETED
        self.save(update_fields=['status', 'updated_at'])
        return True

    def cancel(self):
        if self.status != self.Status.SCHEDULED:
            return False
        self.status = self.Status.CANCELLED
        self.save(update_fields=['status', 'updated_at'])
        return True

    def should_execute_now(self):
        return (
            self.status == self.Status.SCHEDULED
            and self.action == self.Action.SYSTEM_DOWN
            and self.scheduled_at <= timezone.now()
        )

    def requires_admin_action(self):
        if self.action != self.Action.SYSTEM_DOWN:
            return False
        if self.status not in (self.Status.ACTIVE, self.Status.SCHEDULED):
            return False
        if self.scheduled_at > timezone.now():
            return False
        schedule = SystemSchedule.get_today_record()
        return bool(schedule and schedule.is_locked and schedule.is_admin_action_pending)

    def get_admin_modal_info(self):
        return {
            'id': self.id,
            'type': 'scheduled',
            'scheduled_at': self.scheduled_at.isoformat(),
            'executed_at': self.executed_at.isoformat() if self.executed_at else None,
            'description': self.description,
            'status': self.status,
            'admin_action_required': self.requires_admin_action(),
        }

    def record_admin_action(self, action, admin):
        """Write the admin decision into metadata."""
        metadata = dict(self.metadata or {})
        metadata['admin_action'] = action
        metadata['admin_action_completed_at'] = timezone.now().isoformat()
        metadata['admin_user_id'] = admin.id
        self.metadata = metadata
        self.save(update_fields=['metadata', 'updated_at'])

    def mark_admin_action_completed(self, action, admin):
        if not self.requires_admin_action():
            return False
        self.record_admin_action(action, admin)
        return True
