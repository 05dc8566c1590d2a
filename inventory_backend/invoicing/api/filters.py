# invoicing/api/filters.py

import django_filters
from django.db.models import Q

from invoicing.models import InternalInvoice


class InternalInvoiceFilter(django_filters.FilterSet):
    """
    GET /invoicing/invoices/?state=&search=&date_from=&date_to=&movement_type=

    search matches code or concept (case-insensitive, contains).
    date_from / date_to are inclusive on movement_date.
    """

    state = django_filters.ChoiceFilter(choices=InternalInvoice.STATES)
    search = django_filters.CharFilter(method="filter_search")
    date_from = django_filters.DateFilter(field_name="movement_date", lookup_expr="gte")
    date_to = django_filters.DateFilter(field_name="movement_date", lookup_expr="lte")
    movement_type = django_filters.UUIDFilter(field_name="movement_type_id")

    class Meta:
        model = InternalInvoice
        fields = ["state", "movement_type"]

    def filter_search(self, queryset, name, value):
        value = (value or "").strip()
        if not value:
            return queryset
        return queryset.filter(Q(code__icontains=value) | Q(concept__icontains=value))

