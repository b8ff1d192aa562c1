"""
Invitation lifecycle tests: invite, accept/decline, join by code, role management.
"""

import pytest

from app.core.errors import (
    AlreadyCollaboratorError,
    ForbiddenError,
    InvitationPendingError,
    NotFoundError,
    ValidationError,
)
from app.core.permissions import Role, Status, permissions_for
from app.crud.collaborator import insert_collaborator
from app.models.collaborator import Collaborator
from app.services import invitations
from app.services.access import resolve_access
from app.services.audit import wedding_activity


@pytest.fixture
def invite(db, owner, wedding, notifier):
    def _invite(email, role=Role.FRIEND, name=None, inviter=None):
        return invitations.invite(
            db,
            inviter_id=(inviter or owner).id,
            wedding_id=wedding.id,
            email=email,
            name=name,
            role=role,
            dispatch=notifier,
        )

    return _invite


class TestInvite:
    def test_unknown_email_creates_pending_unbound_record(self, invite, notifier, wedding):
        c = invite("alice@x.com", Role.PLANNER, name="Alice")
        assert c.status == Status.PENDING.value
        assert c.user_id is None
        assert c.accepted_at is None
        assert c.role == "Planner"
        assert c.permissions == permissions_for(Role.PLANNER)

        assert len(notifier.sent) == 1
        assert notifier.sent[0]["email"] == "alice@x.com"
        assert notifier.sent[0]["wedding_id"] == wedding.id

    def test_existing_account_is_bound_and_accepted(self, invite, make_user):
        bob = make_user("bob@x.com", "Bob")
        c = invite("Bob@X.com", Role.BEST_MAN)
        assert c.status == Status.ACCEPTED.value
        assert c.user_id == bob.id
        assert c.accepted_at is not None
        assert c.name == "Bob"

    @pytest.mark.parametrize("role", list(Role))
    def test_permissions_match_role(self, invite, role):
        c = invite(f"{role.name.lower()}@x.com", role)
        assert c.permissions == permissions_for(role)

    def test_second_invite_same_email_rejected(self, db, invite, wedding):
        invite("alice@x.com")
        with pytest.raises(AlreadyCollaboratorError):
            invite("ALICE@x.com", Role.PLANNER)
        assert db.query(Collaborator).filter_by(wedding_id=wedding.id).count() == 1

    def test_inviting_the_owner_rejected(self, invite, owner):
        with pytest.raises(AlreadyCollaboratorError):
            invite(owner.email)

    def test_friend_cannot_invite(self, invite, make_user):
        friend = make_user("friend@x.com")
        invite("friend@x.com", Role.FRIEND)
        with pytest.raises(ForbiddenError):
            invite("carol@x.com", inviter=friend)

    def test_planner_can_invite(self, invite, make_user):
        planner = make_user("planner@x.com")
        invite("planner@x.com", Role.PLANNER)
        c = invite("carol@x.com", inviter=planner)
        assert c.invited_by == planner.id

    def test_stranger_cannot_invite(self, invite, make_user):
        stranger = make_user("stranger@x.com")
        with pytest.raises(NotFoundError):
            invite("carol@x.com", inviter=stranger)

    @pytest.mark.parametrize("email", ["not-an-email", "a@", ""])
    def test_malformed_email(self, invite, email):
        with pytest.raises(ValidationError):
            invite(email)

    def test_unknown_role(self, invite):
        with pytest.raises(ValidationError):
            invite("alice@x.com", role="Bridesmaid")

    def test_notification_failure_does_not_fail_invite(self, db, owner, wedding):
        def broken(**kwargs):
            raise ConnectionError("smtp down")

        c = invitations.invite(
            db,
            inviter_id=owner.id,
            wedding_id=wedding.id,
            email="alice@x.com",
            name="Alice",
            role=Role.FRIEND,
            dispatch=broken,
        )
        assert c.id is not None
        assert db.query(Collaborator).count() == 1


def _bound_pending(db, wedding, user, role=Role.PARENT):
    return insert_collaborator(
        db,
        wedding_id=wedding.id,
        email=user.email,
        name=user.name,
        role=role,
        invited_by=wedding.owner_id,
        user_id=user.id,
        status=Status.PENDING,
    )


class TestAcceptDecline:
    def test_accept_missing_record(self, db, wedding, make_user):
        pat = make_user("pat@x.com")
        with pytest.raises(NotFoundError):
            invitations.accept_invitation(db, user_id=pat.id, wedding_id=wedding.id)

    def test_accept_then_decline_fails(self, db, wedding, make_user):
        pat = make_user("pat@x.com")
        _bound_pending(db, wedding, pat)

        c = invitations.accept_invitation(db, user_id=pat.id, wedding_id=wedding.id)
        assert c.status == Status.ACCEPTED.value
        assert c.accepted_at is not None

        with pytest.raises(NotFoundError):
            invitations.decline_invitation(db, user_id=pat.id, wedding_id=wedding.id)
        with pytest.raises(NotFoundError):
            invitations.accept_invitation(db, user_id=pat.id, wedding_id=wedding.id)

    def test_decline_is_terminal(self, db, wedding, make_user):
        pat = make_user("pat@x.com")
        _bound_pending(db, wedding, pat)
        c = invitations.decline_invitation(db, user_id=pat.id, wedding_id=wedding.id)
        assert c.status == Status.DECLINED.value
        assert c.accepted_at is None
        with pytest.raises(NotFoundError):
            invitations.accept_invitation(db, user_id=pat.id, wedding_id=wedding.id)

    def test_accept_binds_email_invite(self, invite, db, wedding, make_user):
        invite("alice@x.com", Role.PLANNER)
        alice = make_user("alice@x.com")
        c = invitations.accept_invitation(db, user_id=alice.id, wedding_id=wedding.id)
        assert c.user_id == alice.id
        assert c.status == Status.ACCEPTED.value

    def test_pending_planner_can_invite(self, db, wedding, invite, make_user):
        planner = make_user("planner@x.com")
        _bound_pending(db, wedding, planner, role=Role.PLANNER)
        c = invite("carol@x.com", inviter=planner)
        assert c.invited_by == planner.id


class TestJoinByCode:
    def test_alice_scenario(self, db, invite, wedding, make_user):
        c = invite("alice@x.com", Role.PLANNER, name="Alice")
        assert (c.status, c.user_id) == (Status.PENDING.value, None)
        p = c.permissions
        assert p.can_edit_timeline and p.can_edit_guests and p.can_edit_shop and p.can_invite_others
        assert p.can_manage_roles is False

        alice = make_user("alice@x.com", "Alice")
        joined = invitations.join_by_code(db, user_id=alice.id, wedding_id=wedding.id)
        assert joined.id == c.id
        assert joined.user_id == alice.id
        assert joined.status == Status.ACCEPTED.value
        assert joined.role == "Planner"
        assert db.query(Collaborator).count() == 1

        access = resolve_access(db, alice.id, wedding.id)
        assert access.role == Role.PLANNER

    def test_join_without_invite_creates_accepted_record(self, db, wedding, make_user):
        dave = make_user("dave@x.com")
        c = invitations.join_by_code(db, user_id=dave.id, wedding_id=wedding.id, default_role=Role.SIBLING)
        assert c.status == Status.ACCEPTED.value
        assert c.role == "Sibling"
        assert c.invited_by == dave.id

    def test_join_twice(self, db, wedding, make_user):
        dave = make_user("dave@x.com")
        invitations.join_by_code(db, user_id=dave.id, wedding_id=wedding.id)
        with pytest.raises(AlreadyCollaboratorError):
            invitations.join_by_code(db, user_id=dave.id, wedding_id=wedding.id)
        assert db.query(Collaborator).count() == 1

    def test_join_with_bound_pending_invite(self, db, wedding, make_user):
        pat = make_user("pat@x.com")
        _bound_pending(db, wedding, pat)
        with pytest.raises(InvitationPendingError):
            invitations.join_by_code(db, user_id=pat.id, wedding_id=wedding.id)

    def test_join_after_decline(self, db, wedding, make_user):
        pat = make_user("pat@x.com")
        _bound_pending(db, wedding, pat)
        invitations.decline_invitation(db, user_id=pat.id, wedding_id=wedding.id)
        with pytest.raises(AlreadyCollaboratorError):
            invitations.join_by_code(db, user_id=pat.id, wedding_id=wedding.id)

    def test_owner_cannot_join_own_wedding(self, db, owner, wedding):
        with pytest.raises(AlreadyCollaboratorError):
            invitations.join_by_code(db, user_id=owner.id, wedding_id=wedding.id)

    def test_unknown_wedding(self, db, make_user):
        dave = make_user("dave@x.com")
        with pytest.raises(NotFoundError):
            invitations.join_by_code(db, user_id=dave.id, wedding_id=4242)

    def test_owner_role_cannot_be_self_assigned(self, db, wedding, make_user):
        dave = make_user("dave@x.com")
        with pytest.raises(ValidationError):
            invitations.join_by_code(db, user_id=dave.id, wedding_id=wedding.id, default_role=Role.OWNER)
        with pytest.raises(ValidationError):
            invitations.join_by_code(db, user_id=dave.id, wedding_id=wedding.id, default_role="Owner")
        assert db.query(Collaborator).count() == 0


class TestRoleManagement:
    def test_owner_changes_role(self, db, owner, wedding, invite):
        c = invite("alice@x.com", Role.FRIEND)
        updated = invitations.change_role(
            db, actor_id=owner.id, wedding_id=wedding.id, collaborator_id=c.id, new_role=Role.BRIDE
        )
        assert updated.role == "Bride"
        assert updated.permissions == permissions_for(Role.BRIDE)

    def test_planner_cannot_change_roles(self, db, wedding, invite, make_user):
        planner = make_user("planner@x.com")
        invite("planner@x.com", Role.PLANNER)
        c = invite("alice@x.com")
        with pytest.raises(ForbiddenError):
            invitations.change_role(
                db, actor_id=planner.id, wedding_id=wedding.id, collaborator_id=c.id, new_role=Role.OWNER
            )

    def test_invalid_role(self, db, owner, wedding, invite):
        c = invite("alice@x.com")
        with pytest.raises(ValidationError):
            invitations.change_role(
                db, actor_id=owner.id, wedding_id=wedding.id, collaborator_id=c.id, new_role="Boss"
            )

    def test_change_role_unknown_collaborator(self, db, owner, wedding):
        with pytest.raises(NotFoundError):
            invitations.change_role(
                db, actor_id=owner.id, wedding_id=wedding.id, collaborator_id=999, new_role=Role.FRIEND
            )

    def test_promoted_owner_role_can_manage(self, db, owner, wedding, invite, make_user):
        co = make_user("co@x.com")
        c = invite("co@x.com", Role.FRIEND)
        invitations.change_role(
            db, actor_id=owner.id, wedding_id=wedding.id, collaborator_id=c.id, new_role=Role.OWNER
        )
        target = invite("alice@x.com")
        invitations.remove_collaborator(db, actor_id=co.id, wedding_id=wedding.id, collaborator_id=target.id)

    def test_remove(self, db, owner, wedding, invite):
        c = invite("alice@x.com")
        invitations.remove_collaborator(db, actor_id=owner.id, wedding_id=wedding.id, collaborator_id=c.id)
        assert db.query(Collaborator).count() == 0
        with pytest.raises(NotFoundError):
            invitations.remove_collaborator(db, actor_id=owner.id, wedding_id=wedding.id, collaborator_id=c.id)

    def test_removed_email_can_be_invited_again(self, db, owner, wedding, invite):
        c = invite("alice@x.com")
        invitations.remove_collaborator(db, actor_id=owner.id, wedding_id=wedding.id, collaborator_id=c.id)
        again = invite("alice@x.com", Role.PARENT)
        assert again.status == Status.PENDING.value

    def test_list_requires_view(self, db, owner, wedding, invite, make_user):
        invite("alice@x.com")
        invite("bob@x.com")
        rows = invitations.list_collaborators(db, user_id=owner.id, wedding_id=wedding.id)
        assert {r.email for r in rows} == {"alice@x.com", "bob@x.com"}

        stranger = make_user("stranger@x.com")
        with pytest.raises(NotFoundError):
            invitations.list_collaborators(db, user_id=stranger.id, wedding_id=wedding.id)


def test_lifecycle_is_audited(db, owner, wedding, invite, make_user):
    c = invite("alice@x.com", Role.FRIEND)
    alice = make_user("alice@x.com")
    invitations.accept_invitation(db, user_id=alice.id, wedding_id=wedding.id)
    invitations.change_role(db, actor_id=owner.id, wedding_id=wedding.id, collaborator_id=c.id, new_role=Role.PARENT)

    trail = wedding_activity(db, wedding.id)
    assert [row["action"] for row in trail] == [
        "COLLABORATOR_ROLE_CHANGED",
        "INVITE_ACCEPTED",
        "INVITE_CREATED",
    ]
    assert trail[0]["meta"] == {"from": "Friend", "to": "Parent"}
    assert trail[1]["user_id"] == alice.id
