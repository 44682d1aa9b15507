"""
Orders services package.

- OrderLifecycleManager: create, edit, kitchen dispatch, checkout, cancel,
  table transfer, merge and split
- ComboResolver: combo membership and pro-rated combo pricing
- LossAccountant: cost of items canceled after preparation started
- KitchenService: kitchen queue, recipes, stock-outs
"""

# Combo pricing
from .combo_service import ComboResolver, ComboMembership

# Loss accounting
from .loss_service import LossAccountant, LossAssessment, LossLine

# Core order operations
from .lifecycle_service import OrderLifecycleManager

# Kitchen operations
from .kitchen_service import KitchenService

__all__ = [
    'ComboResolver',
    'ComboMembership',
    'LossAccountant',
    'LossAssessment',
    'LossLine',
    'OrderLifecycleManager',
    'KitchenService',
]
