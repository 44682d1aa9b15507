"""
Archiving support for catalog-like records (menu items, combos, tables,
customer groups) that must never be physically deleted while historical
orders still reference them.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone


class ArchivableManager(models.Manager):
    """Default manager: hides archived rows. Models add ``all_objects`` for lookups by id."""

    def get_queryset(self):
        return super().get_queryset().filter(is_active=True)


class ArchivableModel(models.Model):
    """
    Abstract base adding an ``is_active`` flag plus archive audit fields.
    ``delete()`` archives instead of removing the row.
    """

    is_active = models.BooleanField(default=True, db_index=True)
    archived_at = models.DateTimeField(null=True, blank=True)
    archived_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="%(app_label)s_%(class)s_archived",
    )

    objects = ArchivableManager()

    class Meta:
        abstract = True

    def archive(self, archived_by=None):
        self.is_active = False
        self.archived_at = timezone.now()
        if archived_by:
            self.archived_by = archived_by
        self.save(update_fields=["is_active", "archived_at", "archived_by"])

    def delete(self, using=None, keep_parents=False):
        self.archive()
