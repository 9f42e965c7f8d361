import typing as t

from django.core.exceptions import ValidationError
from django.db import models


class SaleWindowMixin(models.Model):
    """Optional on-sale window shared by ticket types and add-ons."""

    sale_starts_at = models.DateTimeField(null=True, blank=True, db_index=True)
    sale_ends_at = models.DateTimeField(null=True, blank=True, db_index=True)

    class Meta:
        abstract = True

    def clean(self) -> None:
        """Reject windows that end before they start."""
        super().clean()
        if self.sale_starts_at and self.sale_ends_at and self.sale_ends_at <= self.sale_starts_at:
            raise ValidationError({"sale_ends_at": ["Sale end must be after sale start."]})


class OrderedMixin(models.Model):
    sort_order = models.PositiveIntegerField(default=0, db_index=True)

    class Meta:
        abstract = True


class PurchasableMixin(SaleWindowMixin, OrderedMixin):
    """Fields common to everything that can be put in an order.

    Prices are integer minor currency units (cents). A null ``capacity`` means the item
    carries no cap of its own.
    """

    name = models.CharField(max_length=255)
    description = models.TextField(blank=True, default="")
    price = models.PositiveIntegerField(default=0, help_text="Price in minor currency units (e.g. cents).")
    capacity = models.PositiveIntegerField(null=True, blank=True)

    class Meta:
        abstract = True

    def __str__(self) -> str:
        return self.name

    @property
    def is_free(self) -> bool:
        return self.price == 0

    def line_total(self, quantity: int) -> int:
        """Exact order line amount in minor units."""
        return t.cast(int, self.price) * quantity
