"""Default module catalog."""

import structlog

from condoauth.core.rbac.repository import PermissionRepository
from condoauth.core.rbac.types import CapabilityKey

logger = structlog.get_logger()

# (code, name, description), in navigation order
DEFAULT_MODULES: tuple[tuple[str, str, str], ...] = (
    ("condominiums", "Condominiums", "Condominium records and settings"),
    ("goals", "Goals", "Condominium goals and their lifecycle"),
    ("groups", "Groups", "Resident and staff groups"),
    ("resources", "Resources", "Shared resources and documents"),
    ("users", "Users", "User accounts"),
    ("permissions", "Permissions", "Pools and grants"),
)

DEFAULT_CAPABILITIES: tuple[tuple[str, str], ...] = (
    ("create", "Create"),
    ("read", "Read"),
    ("update", "Update"),
    ("delete", "Delete"),
    ("export", "Export"),
    ("manage", "Manage"),
)


async def seed_catalog(repo: PermissionRepository) -> int:
    """Create any missing default modules and capabilities.

    Existing rows are left untouched, so the seed can run on every start.

    Returns:
        Number of rows created.
    """
    created = 0
    for position, (code, name, description) in enumerate(DEFAULT_MODULES):
        if await repo.get_module(code) is None:
            await repo.create_module(code, name, description, position)
            created += 1
        for cap_code, cap_name in DEFAULT_CAPABILITIES:
            if await repo.get_capability(CapabilityKey(code, cap_code)) is None:
                await repo.create_capability(code, cap_code, f"{cap_name} {name.lower()}")
                created += 1
    if created:
        logger.info("module_catalog_seeded", created=created)
    return created
