from django.db import models
from django.utils.translation import gettext_lazy as _

from core_backend.utils.archiving import ArchivableModel


class Area(models.Model):
    name = models.CharField(max_length=100, unique=True)

    def __str__(self):
        return self.name


class Table(ArchivableModel):
    class TableStatus(models.TextChoices):
        AVAILABLE = "available", _("Available")
        OCCUPIED = "occupied", _("Occupied")

    name = models.CharField(max_length=50, unique=True)
    area = models.ForeignKey(
        Area, on_delete=models.SET_NULL, null=True, blank=True, related_name="tables"
    )
    capacity = models.PositiveIntegerField(default=4)
    status = models.CharField(
        max_length=20, choices=TableStatus.choices, default=TableStatus.AVAILABLE, db_index=True
    )

    updated_at = models.DateTimeField(auto_now=True)

    all_objects = models.Manager()

    class Meta:
        ordering = ["area__name", "name"]

    def __str__(self):
        return self.name

    @property
    def is_occupied(self):
        return self.status == self.TableStatus.OCCUPIED
