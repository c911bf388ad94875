from evote.errors import ForbiddenError
from evote.models.election_model import Election
from evote.models.user_model import Caller, Role


def require_role(caller: Caller, *roles: Role) -> None:
    if not caller.has_role(*roles):
        raise ForbiddenError("Forbidden")


def in_scope(caller: Caller, election: Election) -> bool:
    """Whether the caller's organization may see or act on the election.

    Elections without an organization are global. An admin without an
    organization is global too.
    """
    if election.organization_id is None:
        return True
    if caller.organization_id == election.organization_id:
        return True
    return caller.role == Role.ADMIN and caller.organization_id is None


def require_scope(caller: Caller, election: Election) -> None:
    if not in_scope(caller, election):
        raise ForbiddenError("Forbidden")
