# Overview: Fixed role constants for the custody workflow.


class Role:
    """The four fixed roles. Not user-definable."""
    OWNER = "owner"
    MANUFACTURER = "manufacturer"
    DISTRIBUTOR = "distributor"
    RETAILER = "retailer"


ALL_ROLES = (Role.OWNER, Role.MANUFACTURER, Role.DISTRIBUTOR, Role.RETAILER)

# Roles the owner assigns through set_addresses
ASSIGNABLE_ROLES = (Role.MANUFACTURER, Role.DISTRIBUTOR, Role.RETAILER)
