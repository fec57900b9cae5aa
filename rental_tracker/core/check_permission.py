from .errors import Forbidden


class CheckRolePermission:
    async def check_property_owner(self, prop, current_user, detail: str):
        if prop.owner_id != current_user.id:
            raise Forbidden(detail)

    async def check_lease_party(self, lease, current_user, detail: str = "Access denied"):
        if current_user.id not in (lease.landlord_id, lease.tenant_id):
            raise Forbidden(detail)

    async def check_lease_landlord(self, lease, current_user, detail: str):
        if lease.landlord_id != current_user.id:
            raise Forbidden(detail)
