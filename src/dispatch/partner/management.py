"""Partner management — commands and handler.

Registration here only creates the dispatch profile; onboarding and document
approval happen in the partner service before a partner reaches dispatch.
"""

from protean import handle
from protean.fields import Boolean, Identifier, Integer, String
from protean.utils.globals import current_domain

from dispatch.domain import dispatch
from dispatch.partner.partner import Partner


@dispatch.command(part_of="Partner")
class RegisterPartner:
    partner_id = Identifier()
    name = String(required=True, max_length=150)
    phone = String(max_length=30)
    max_concurrent_orders = Integer(default=1, min_value=1)


@dispatch.command(part_of="Partner")
class SetPartnerAvailability:
    partner_id = Identifier(required=True)
    is_available = Boolean(required=True)


@dispatch.command(part_of="Partner")
class SetPartnerActive:
    partner_id = Identifier(required=True)
    is_active = Boolean(required=True)


@dispatch.command(part_of="Partner")
class SetPartnerOnline:
    partner_id = Identifier(required=True)
    is_online = Boolean(required=True)


@dispatch.command_handler(part_of=Partner)
class PartnerManagementHandler:
    @handle(RegisterPartner)
    def register_partner(self, command):
        partner = Partner.register(
            name=command.name,
            phone=command.phone,
            max_concurrent_orders=command.max_concurrent_orders or 1,
            partner_id=command.partner_id,
        )
        current_domain.repository_for(Partner).add(partner)
        return str(partner.id)

    @handle(SetPartnerAvailability)
    def set_availability(self, command):
        repo = current_domain.repository_for(Partner)
        partner = repo.get(command.partner_id)
        partner.set_available(command.is_available)
        repo.add(partner)

    @handle(SetPartnerActive)
    def set_active(self, command):
        repo = current_domain.repository_for(Partner)
        partner = repo.get(command.partner_id)
        partner.set_active(command.is_active)
        repo.add(partner)

    @handle(SetPartnerOnline)
    def set_online(self, command):
        repo = current_domain.repository_for(Partner)
        partner = repo.get(command.partner_id)
        partner.set_online(command.is_online)
        repo.add(partner)
