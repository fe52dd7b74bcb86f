from decimal import Decimal

from django.core.validators import MinValueValidator
from django.db import models
from django.utils import timezone
from insync.core.models import User


class Transaction(models.Model):
    """Income or expense entry in a workspace's cash flow"""
    TYPE_CHOICES = [
        ('Income', 'Income'),
        ('Expense', 'Expense'),
    ]

    CATEGORY_CHOICES = [
        ('Salary', 'Salary'),
        ('Marketing', 'Marketing'),
        ('Investment', 'Investment'),
        ('Operations', 'Operations'),
        ('Other', 'Other'),
    ]

    type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    amount = models.DecimalField(max_digits=15, decimal_places=2, validators=[MinValueValidator(Decimal('0.01'))])
    category = models.CharField(max_length=20, choices=CATEGORY_CHOICES, default='Other')
    description = models.TextField()
    date = models.DateField(default=timezone.localdate)
    workspace_id = models.CharField(max_length=50, blank=True, null=True, db_index=True)
    created_by = models.ForeignKey(User, on_delete=models.SET_NULL, null=True, blank=True, related_name='transactions')
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.type} - {self.amount} ({self.category})"

    class Meta:
        db_table = 'transactions'
        ordering = ['-date', '-id']
