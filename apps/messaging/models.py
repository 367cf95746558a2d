"""
Messaging Models - Log of outbound WhatsApp messages
"""
from django.core.validators import RegexValidator
from django.db import models
from django.utils import timezone

from apps.core.exceptions import ValidationException
from apps.core.models import BaseModel

QUEUED = 'queued'
SENT = 'sent'
DELIVERED = 'delivered'
READ = 'read'
FAILED = 'failed'

# Delivery progression; failed is terminal and reachable from queued/sent
STATUS_ORDER = [QUEUED, SENT, DELIVERED, READ]


class Message(BaseModel):
    """
    One outbound message to one recipient.
    """
    TYPE_CHOICES = [
        ('order_confirmation', 'Order Confirmation'),
        ('campaign', 'Campaign'),
        ('reminder', 'Reminder'),
        ('offer', 'Offer'),
        ('custom', 'Custom'),
    ]

    STATUS_CHOICES = [
        (QUEUED, 'Queued'),
        (SENT, 'Sent'),
        (DELIVERED, 'Delivered'),
        (READ, 'Read'),
        (FAILED, 'Failed'),
    ]

    shop = models.ForeignKey('shops.Shop', on_delete=models.CASCADE, related_name='messages')
    type = models.CharField(max_length=30, choices=TYPE_CHOICES)

    recipient_phone = models.CharField(
        max_length=10,
        db_index=True,
        validators=[RegexValidator(r'^[0-9]{10}$', 'Please provide a valid 10-digit phone number')]
    )
    recipient_name = models.CharField(max_length=100, blank=True, null=True)
    customer = models.ForeignKey(
        'customers.Customer', on_delete=models.SET_NULL, null=True, blank=True, related_name='messages'
    )

    body = models.TextField(max_length=1000)
    template_name = models.CharField(max_length=100, blank=True, null=True)
    template_params = models.JSONField(blank=True, null=True)

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=QUEUED)
    provider_message_id = models.CharField(max_length=255, blank=True, null=True)
    order = models.ForeignKey(
        'orders.Order', on_delete=models.SET_NULL, null=True, blank=True, related_name='messages'
    )
    campaign_id = models.CharField(max_length=64, blank=True, null=True)

    sent_at = models.DateTimeField(blank=True, null=True)
    delivered_at = models.DateTimeField(blank=True, null=True)
    read_at = models.DateTimeField(blank=True, null=True)
    failure_reason = models.TextField(blank=True, null=True)
    retry_count = models.PositiveIntegerField(default=0)

    class Meta:
        db_table = 'messaging_messages'
        verbose_name = 'Message'
        verbose_name_plural = 'Messages'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['shop', 'status']),
            models.Index(fields=['shop', 'type']),
        ]

    def __str__(self):
        return f"{self.type} to {self.recipient_phone} [{self.status}]"

    def advance_status(self, status: str):
        """
        Move forward along queued -> sent -> delivered -> read, or fail.
        Going backwards or leaving failed is rejected.
        """
        if self.status == FAILED:
            raise ValidationException("Message has already failed", field="status")
        if status == FAILED:
            if self.status in (DELIVERED, READ):
                raise ValidationException(f"Cannot fail a message that is {self.status}", field="status")
        elif STATUS_ORDER.index(status) <= STATUS_ORDER.index(self.status):
            raise ValidationException(f"Cannot move message from {self.status} to {status}", field="status")
        self.status = status

    def mark_as_sent(self, provider_message_id: str):
        self.advance_status(SENT)
        self.provider_message_id = provider_message_id
        self.sent_at = timezone.now()

    def mark_as_delivered(self):
        self.advance_status(DELIVERED)
        self.delivered_at = timezone.now()

    def mark_as_read(self):
        self.advance_status(READ)
        self.read_at = timezone.now()

    def mark_as_failed(self, reason: str):
        self.advance_status(FAILED)
        self.failure_reason = reason
