"""Test factories for generating test data.

    from tests.factories import UserFactory, TenantFactory, ...
"""

from tests.factories.base import BaseFactory, generate_uuid, utc_now
from tests.factories.tenant import TenantFactory
from tests.factories.user import (
    DEFAULT_TEST_PASSWORD,
    UserFactory,
    UserTenantMembershipFactory,
)

__all__ = [
    "DEFAULT_TEST_PASSWORD",
    "BaseFactory",
    "TenantFactory",
    "UserFactory",
    "UserTenantMembershipFactory",
    "generate_uuid",
    "utc_now",
]
