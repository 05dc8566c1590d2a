# permissions/roles.py

from __future__ import annotations

from typing import Optional

from rest_framework.permissions import BasePermission


# =========================================================
# ROLE CONSTANTS (STAFF JOB ROLES)
# =========================================================
ROLE_ADMIN = "admin"
ROLE_MANAGER = "manager"
ROLE_WAREHOUSE = "warehouse"
ROLE_AUDITOR = "auditor"

STAFF_ROLES = {
    ROLE_ADMIN,
    ROLE_MANAGER,
    ROLE_WAREHOUSE,
    ROLE_AUDITOR,
}


# =========================================================
# CAPABILITIES (THE REAL PERMISSION LANGUAGE)
# =========================================================
# Views protect capabilities, not raw roles.
CAP_CATALOG_VIEW = "catalog.view"
CAP_CATALOG_EDIT = "catalog.edit"  # categories, units, products, movement types

CAP_INVENTORY_ADJUST = "inventory.adjust"  # manual stock corrections (sensitive)

CAP_INVOICES_VIEW = "invoices.view"
CAP_INVOICES_EDIT = "invoices.edit"  # create drafts, edit header/lines
CAP_INVOICES_CONFIRM = "invoices.confirm"  # move into / out of CONFIRMED
CAP_INVOICES_VOID = "invoices.void"
CAP_INVOICES_DELETE = "invoices.delete"

CAP_USERS_MANAGE = "users.manage"

ALL_CAPABILITIES = {
    CAP_CATALOG_VIEW,
    CAP_CATALOG_EDIT,
    CAP_INVENTORY_ADJUST,
    CAP_INVOICES_VIEW,
    CAP_INVOICES_EDIT,
    CAP_INVOICES_CONFIRM,
    CAP_INVOICES_VOID,
    CAP_INVOICES_DELETE,
    CAP_USERS_MANAGE,
}


# =========================================================
# ROLE → CAPABILITY MAP (DEFAULT)
# =========================================================
ROLE_CAPABILITIES: dict[str, set[str]] = {
    ROLE_ADMIN: {
        *ALL_CAPABILITIES,
    },
    ROLE_MANAGER: {
        CAP_CATALOG_VIEW,
        CAP_CATALOG_EDIT,
        CAP_INVENTORY_ADJUST,
        CAP_INVOICES_VIEW,
        CAP_INVOICES_EDIT,
        CAP_INVOICES_CONFIRM,
        CAP_INVOICES_VOID,
    },
    ROLE_WAREHOUSE: {
        CAP_CATALOG_VIEW,
        CAP_INVOICES_VIEW,
        CAP_INVOICES_EDIT,
        # drafts only: confirming moves stock and needs a manager
    },
    ROLE_AUDITOR: {
        CAP_CATALOG_VIEW,
        CAP_INVOICES_VIEW,
    },
}


# =========================================================
# Helpers
# =========================================================
def get_user_role(user) -> Optional[str]:
    role = getattr(user, "role", None)
    return role if role in STAFF_ROLES else None


def effective_capabilities_for(user) -> set[str]:
    if getattr(user, "is_superuser", False):
        return set(ALL_CAPABILITIES)
    return set(ROLE_CAPABILITIES.get(get_user_role(user), set()))


def user_has_capability(user, capability: str) -> bool:
    if not user or not user.is_authenticated:
        return False
    return capability in effective_capabilities_for(user)


# =========================================================
# Capability Permission
# =========================================================
class HasCapability(BasePermission):
    """
    Require a specific capability.

    Usage:
        def get_permissions(self):
            self.required_capability = CAP_INVOICES_VOID
            return [IsAuthenticated(), HasCapability()]
    """

    def has_permission(self, request, view):
        required = getattr(view, "required_capability", None)
        if not required:
            # deny-by-default to avoid accidental open endpoints
            return False
        return user_has_capability(request.user, required)
