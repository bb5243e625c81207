import pytest

from hotelbook.models import UserRole
from hotelbook.services.access import (
    ActivationRequired,
    Admin,
    Allowed,
    Denied,
    Guest,
    GuardFailed,
    HotelOwner,
    LoginRequired,
    RoleLookup,
    decide_access,
    required_roles_text,
    resolve_caller_role,
    role_of,
)


def test_unauthenticated_gets_login_prompt():
    assert decide_access(False, None, [UserRole.ADMIN]) == LoginRequired()


def test_failed_lookup_is_a_guard_failure():
    decision = decide_access(True, RoleLookup(error="Actor not available"), [UserRole.USER])
    assert decision == GuardFailed("Actor not available")
    assert isinstance(decide_access(True, None, [UserRole.USER]), GuardFailed)


def test_guest_denied_admin_page():
    caller = resolve_caller_role(UserRole.GUEST, False, False)
    decision = decide_access(True, RoleLookup(caller=caller), [UserRole.ADMIN])
    assert isinstance(decision, Denied)
    assert decision.admin_only
    assert decision.required_text == "Admin"


@pytest.mark.parametrize("role", list(UserRole))
def test_admin_flag_bypasses_everything(role):
    caller = resolve_caller_role(role, True, False)
    assert caller == Admin()
    decision = decide_access(True, RoleLookup(caller=caller), [UserRole.GUEST], require_activation=True)
    assert isinstance(decision, Allowed)


def test_unactivated_hotel_owner_gets_activation_form():
    caller = resolve_caller_role(UserRole.USER, False, False)
    assert caller == HotelOwner(activated=False)
    decision = decide_access(True, RoleLookup(caller=caller), [UserRole.USER], require_activation=True)
    assert isinstance(decision, ActivationRequired)


def test_activated_hotel_owner_allowed():
    caller = resolve_caller_role(UserRole.USER, False, True)
    assert decide_access(True, RoleLookup(caller=caller), [UserRole.USER, UserRole.ADMIN],
                         require_activation=True) == Allowed(caller)


def test_wrong_role_is_a_hard_denial_even_with_activation_flag():
    decision = decide_access(True, RoleLookup(caller=Guest()), [UserRole.USER, UserRole.ADMIN],
                             require_activation=True)
    assert isinstance(decision, Denied)
    assert decision.required_text == "Hotel or Admin"
    assert not decision.admin_only


def test_required_roles_text_without_roles():
    assert required_roles_text(()) == "special access"


def test_unknown_caller_role_is_rejected():
    with pytest.raises(TypeError):
        role_of("admin")
    with pytest.raises(TypeError):
        decide_access(True, RoleLookup(caller=object()), [UserRole.ADMIN])
