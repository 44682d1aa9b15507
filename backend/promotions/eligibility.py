"""
Promotion eligibility as an ordered list of checks.

Each check is a predicate plus the message shown when it fails. Checks run in
order and evaluation stops at the first failure, so callers always get exactly
one reason.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Callable, List, Optional, Tuple, Union

from django.utils import timezone

from .rules import PromotionRule
from .usage import PromotionUsageService


@dataclass(frozen=True)
class EligibilityContext:
    customer_id: Optional[int]
    customer_group_id: Optional[int]
    order_total: Decimal
    now: datetime

    @property
    def is_walk_in(self) -> bool:
        return self.customer_id is None

    @classmethod
    def for_customer(cls, customer, order_total, now=None):
        return cls(
            customer_id=customer.id if customer else None,
            customer_group_id=customer.group_id if customer else None,
            order_total=order_total,
            now=now or timezone.now(),
        )


@dataclass(frozen=True)
class EligibilityResult:
    eligible: bool
    reason: Optional[str] = None

    @classmethod
    def ok(cls):
        return cls(eligible=True)

    @classmethod
    def fail(cls, reason):
        return cls(eligible=False, reason=reason)


Predicate = Callable[[PromotionRule, EligibilityContext], bool]
Reason = Union[str, Callable[[PromotionRule, EligibilityContext], str]]


class PromotionEligibilityEvaluator:

    def __init__(self, usage_store=PromotionUsageService):
        self.usage_store = usage_store

    def checks(self) -> List[Tuple[Predicate, Reason]]:
        return [
            (self.is_active, "Promotion is not active"),
            (self.has_started, "Promotion has not started yet"),
            (self.has_not_expired, "Promotion has expired"),
            (self.under_total_usage, "Promotion usage limit has been reached"),
            (self.customer_identified, "Promotion requires a member account to track usage"),
            (self.under_customer_usage, "Customer has already used this promotion the maximum number of times"),
            (self.walk_in_allowed, "Promotion is only available to members"),
            (self.customer_in_scope, "Customer is not eligible for this promotion"),
            (
                self.meets_min_order_value,
                lambda rule, ctx: f"Order total must be at least {rule.min_order_value}",
            ),
        ]

    def evaluate(self, rule: PromotionRule, context: EligibilityContext) -> EligibilityResult:
        for predicate, reason in self.checks():
            if not predicate(rule, context):
                return EligibilityResult.fail(reason(rule, context) if callable(reason) else reason)
        return EligibilityResult.ok()

    @staticmethod
    def is_active(rule, ctx):
        return rule.is_active

    @staticmethod
    def has_started(rule, ctx):
        return rule.start_date is None or ctx.now >= rule.start_date

    @staticmethod
    def has_not_expired(rule, ctx):
        return rule.end_date is None or ctx.now <= rule.end_date

    @staticmethod
    def under_total_usage(rule, ctx):
        return rule.max_total_usage is None or rule.current_total_usage < rule.max_total_usage

    @staticmethod
    def customer_identified(rule, ctx):
        return rule.max_usage_per_customer is None or not ctx.is_walk_in

    def under_customer_usage(self, rule, ctx):
        if rule.max_usage_per_customer is None:
            return True
        used = self.usage_store.count_usage(rule.promotion_id, ctx.customer_id)
        return used < rule.max_usage_per_customer

    @staticmethod
    def walk_in_allowed(rule, ctx):
        return not ctx.is_walk_in or rule.customer_scope.walk_in

    @staticmethod
    def customer_in_scope(rule, ctx):
        if ctx.is_walk_in:
            return True
        return rule.customer_scope.admits_member(ctx.customer_id, ctx.customer_group_id)

    @staticmethod
    def meets_min_order_value(rule, ctx):
        return not rule.min_order_value or ctx.order_total >= rule.min_order_value
