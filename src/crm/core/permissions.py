"""Role based permission matrix for tenant members."""

from collections.abc import Mapping, Sequence
from typing import Any, Final, Literal

Module = Literal[
    "leads",
    "contacts",
    "accounts",
    "opportunities",
    "events",
    "invoices",
    "contracts",
    "users",
    "settings",
]
Action = Literal["view", "create", "edit", "delete"]

MODULES: Final[tuple[str, ...]] = (
    "leads",
    "contacts",
    "accounts",
    "opportunities",
    "events",
    "invoices",
    "contracts",
    "users",
    "settings",
)

RolePermissions = dict[str, dict[str, bool]]

_CRUD: Final = ("view", "create", "edit", "delete")


def _grant(**modules: str) -> RolePermissions:
    """Build a full permission map from per-module action strings.

    ``_grant(leads="vce")`` grants view/create/edit on leads and nothing else.
    Modules that are not mentioned get no permissions.
    """
    letters = {"v": "view", "c": "create", "e": "edit", "d": "delete"}
    perms: RolePermissions = {}
    for module in MODULES:
        allowed = {letters[ch] for ch in modules.get(module, "")}
        actions = ("view", "edit") if module == "settings" else _CRUD
        perms[module] = {action: action in allowed for action in actions}
    return perms


_FULL = _grant(**{module: "vced" for module in MODULES})

DEFAULT_ROLE_PERMISSIONS: Final[dict[str, RolePermissions]] = {
    "admin": _FULL,
    "tenant_admin": _FULL,
    "sales_rep": _grant(
        leads="vce",
        contacts="vce",
        accounts="vce",
        opportunities="vce",
        events="vce",
        invoices="v",
        contracts="vce",
    ),
    "operations_manager": _grant(
        leads="v",
        contacts="v",
        accounts="v",
        opportunities="v",
        events="vced",
        invoices="vce",
        contracts="vce",
    ),
    "user": _grant(),
    "staff": _grant(),
}

FALLBACK_ROLE: Final[str] = "user"


def get_role_permissions(
    role: str, custom_roles: Sequence[Mapping[str, Any]] | None = None
) -> Mapping[str, Mapping[str, bool]]:
    """Resolve a role to its permission map.

    System roles win over custom roles with the same id. Unknown roles get
    the permissions of ``user``.
    """
    if role in DEFAULT_ROLE_PERMISSIONS:
        return DEFAULT_ROLE_PERMISSIONS[role]

    for custom in custom_roles or ():
        if custom.get("id") == role and custom.get("permissions"):
            return custom["permissions"]  # type: ignore[no-any-return]

    return DEFAULT_ROLE_PERMISSIONS[FALLBACK_ROLE]


def has_permission(
    role: str,
    module: str,
    action: str,
    custom_roles: Sequence[Mapping[str, Any]] | None = None,
) -> bool:
    """Check whether a role may perform an action on a module."""
    module_perms = get_role_permissions(role, custom_roles).get(module)
    if not module_perms:
        return False

    # Settings only distinguish reading from changing
    if module == "settings":
        return bool(module_perms.get("view" if action == "view" else "edit", False))

    return module_perms.get(action) is True


def custom_roles_from_settings(settings: Mapping[str, Any] | None) -> list[Mapping[str, Any]]:
    """Extract custom role definitions from a tenant's settings document."""
    if not settings:
        return []
    roles = settings.get("custom_roles") or []
    return [role for role in roles if isinstance(role, Mapping)]


def is_known_role(role: str, custom_roles: Sequence[Mapping[str, Any]] | None = None) -> bool:
    """True for system roles and for custom roles defined by the tenant."""
    if role in DEFAULT_ROLE_PERMISSIONS:
        return True
    return any(custom.get("id") == role for custom in custom_roles or ())
