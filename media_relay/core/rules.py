"""Moteur de règles d'approbation des demandes."""
from media_relay.core.models import ApprovalAction, ApprovalPolicy, PolicyMode


# mode -> (contact normal, contact en exception)
_ACTION_TABLE = {
    PolicyMode.AUTO_APPROVE: (ApprovalAction.AUTO_APPROVE, ApprovalAction.HOLD),
    PolicyMode.MANUAL: (ApprovalAction.HOLD, ApprovalAction.AUTO_APPROVE),
    PolicyMode.AUTO_DENY: (ApprovalAction.AUTO_REJECT, ApprovalAction.AUTO_APPROVE),
}


def is_exception_contact(policy: ApprovalPolicy, contact_hash: str) -> bool:
    """Un contact n'est une exception que si les exceptions sont activées."""
    if not policy.exceptions_enabled:
        return False
    return contact_hash in policy.exception_contacts


def decide_action(policy: ApprovalPolicy, contact_hash: str) -> ApprovalAction:
    """Détermine l'action effective pour un contact selon la politique."""
    normal, exception = _ACTION_TABLE[PolicyMode(policy.mode)]
    if is_exception_contact(policy, contact_hash):
        return exception
    return normal
