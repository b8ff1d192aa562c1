"""
Races on the collaborators table: parallel invite / join for one identity
must leave exactly one record.
"""

import threading
from concurrent.futures import ThreadPoolExecutor

from app.core.errors import AlreadyCollaboratorError, InvitationPendingError
from app.core.permissions import Role
from app.models.collaborator import Collaborator
from app.services import invitations

N = 8


def _race(session_factory, n, fn):
    barrier = threading.Barrier(n)

    def _worker(i):
        db = session_factory()
        try:
            barrier.wait()
            return fn(db, i)
        except (AlreadyCollaboratorError, InvitationPendingError) as e:
            return e
        finally:
            db.close()

    with ThreadPoolExecutor(max_workers=n) as pool:
        return list(pool.map(_worker, range(n)))


def test_parallel_invites_same_email(session_factory, db, owner, wedding):
    owner_id, wedding_id = owner.id, wedding.id

    def _invite(s, i):
        return invitations.invite(
            s,
            inviter_id=owner_id,
            wedding_id=wedding_id,
            email="alice@x.com",
            name=f"Alice {i}",
            role=Role.FRIEND,
            dispatch=lambda **kw: None,
        )

    results = _race(session_factory, N, _invite)

    created = [r for r in results if isinstance(r, Collaborator)]
    rejected = [r for r in results if isinstance(r, AlreadyCollaboratorError)]
    assert len(created) == 1
    assert len(rejected) == N - 1
    assert db.query(Collaborator).filter_by(wedding_id=wedding_id).count() == 1


def test_invite_and_join_race(session_factory, db, owner, wedding, make_user):
    owner_id, wedding_id = owner.id, wedding.id
    alice_id = make_user("alice@x.com").id

    def _invite_or_join(s, i):
        if i % 2 == 0:
            return invitations.invite(
                s,
                inviter_id=owner_id,
                wedding_id=wedding_id,
                email="alice@x.com",
                name="Alice",
                role=Role.PLANNER,
                dispatch=lambda **kw: None,
            )
        return invitations.join_by_code(s, user_id=alice_id, wedding_id=wedding_id)

    results = _race(session_factory, N, _invite_or_join)

    assert len([r for r in results if isinstance(r, Collaborator)]) == 1
    assert db.query(Collaborator).filter_by(wedding_id=wedding_id).count() == 1
