from decimal import Decimal

from rest_framework import serializers
from .models import Transaction


class TransactionSerializer(serializers.ModelSerializer):
    amount = serializers.DecimalField(max_digits=15, decimal_places=2, min_value=Decimal('0.01'))
    created_by_email = serializers.EmailField(source='created_by.email', read_only=True, default=None)

    class Meta:
        model = Transaction
        fields = ['id', 'type', 'amount', 'category', 'description', 'date', 'workspace_id',
                  'created_by', 'created_by_email', 'created_at']
        read_only_fields = ['id', 'workspace_id', 'created_by', 'created_at']

    def validate_description(self, value):
        if not value or not value.strip():
            raise serializers.ValidationError('Description is required')
        return value.strip()
