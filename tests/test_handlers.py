# tests/test_handlers.py
from fidelizacion.services.auth_service import AuthService
from fidelizacion.services.handlers.base import verify_chain_integrity
from fidelizacion.services.handlers.login.find_account import FindAccountHandler
from fidelizacion.services.handlers.login.verify_password import VerifyPasswordHandler


def test_login_chain_is_well_formed():
    chain = AuthService.build_login_chain()
    names = []
    current = chain
    while current is not None:
        names.append(current.__class__.__name__)
        current = current._next_handler

    assert names == [
        "FindAccountHandler",
        "VerifyPasswordHandler",
        "TwoFactorGateHandler",
        "ResolveRoleHandler",
        "IssueAccessTokenHandler",
    ]


def test_change_password_chain_is_well_formed():
    assert verify_chain_integrity(AuthService.build_change_password_chain())


def test_cycle_is_detected():
    first = FindAccountHandler()
    second = VerifyPasswordHandler()
    first.set_next(second)
    second.set_next(first)

    assert verify_chain_integrity(first) is False
