import django_filters
from .models import Document


class DocumentFilter(django_filters.FilterSet):
    """
    Category tab + free-text search, both applied together.

    `category=all` (or no category) is the "All" tab; `search` matches the
    file name case-insensitively.
    """
    category = django_filters.CharFilter(method='filter_category')
    search = django_filters.CharFilter(method='filter_search')
    type = django_filters.ChoiceFilter(choices=Document.TYPE_CHOICES)

    class Meta:
        model = Document
        fields = []

    def filter_category(self, queryset, name, value):
        if not value or value.lower() == 'all':
            return queryset
        return queryset.filter(category__iexact=value)

    def filter_search(self, queryset, name, value):
        value = value.strip()
        if not value:
            return queryset
        return queryset.filter(name__icontains=value)
