import pytest

from echo_messenger.chat.directory import ConversationDirectory
from echo_messenger.core.errors import Conflict, Forbidden, InvalidRequest, NotFound


@pytest.fixture
def directory(repository):
    return ConversationDirectory(repository)


class TestCreate:
    def test_creates_with_creator_and_targets(self, directory, users):
        alice, bob, carol = users["Alice"], users["Bob"], users["Carol"]

        conversation, created = directory.create(alice.id, ["Bob", "Carol"])

        assert created is True
        assert conversation.creator_id == alice.id
        assert sorted(conversation.member_ids) == sorted([alice.id, bob.id, carol.id])

    def test_same_members_deduplicated(self, directory, users):
        alice = users["Alice"]

        first, _ = directory.create(alice.id, ["bob", "carol"])
        second, created = directory.create(alice.id, ["CAROL", "Bob"])

        assert created is False
        assert second.id == first.id

    def test_dedup_ignores_who_creates(self, directory, users):
        first, _ = directory.create(users["Alice"].id, ["Bob"])
        second, created = directory.create(users["Bob"].id, ["alice"])

        assert created is False
        assert second.id == first.id

    def test_duplicate_usernames_collapse(self, directory, users):
        conversation, _ = directory.create(users["Alice"].id, ["Bob", "bob", "BOB"])

        assert len(conversation.member_ids) == 2

    def test_subset_is_a_different_conversation(self, directory, users):
        pair, _ = directory.create(users["Alice"].id, ["Bob"])
        trio, created = directory.create(users["Alice"].id, ["Bob", "Carol"])

        assert created is True
        assert trio.id != pair.id

    def test_empty_targets_rejected(self, directory, users):
        with pytest.raises(InvalidRequest):
            directory.create(users["Alice"].id, [])

    @pytest.mark.parametrize("name", ["Alice", "ALICE"])
    def test_self_only_rejected(self, directory, users, name):
        with pytest.raises(InvalidRequest):
            directory.create(users["Alice"].id, [name])

    def test_unknown_usernames_listed(self, directory, users):
        with pytest.raises(NotFound) as excinfo:
            directory.create(users["Alice"].id, ["Bob", "ghost", "Nobody"])

        assert excinfo.value.context["not_found"] == ["ghost", "Nobody"]
        assert excinfo.value.detail["not_found"] == ["ghost", "Nobody"]


class TestCheckMembership:
    def test_member_gets_conversation(self, directory, users):
        conversation, _ = directory.create(users["Alice"].id, ["Bob"])

        fetched = directory.check_membership(conversation.id, users["Bob"].id)

        assert fetched.id == conversation.id
        assert users["Bob"].id in fetched.member_ids

    def test_missing_conversation(self, directory, users):
        with pytest.raises(NotFound):
            directory.check_membership("does-not-exist", users["Alice"].id)

    def test_non_member_forbidden(self, directory, users):
        conversation, _ = directory.create(users["Alice"].id, ["Bob"])

        with pytest.raises(Forbidden):
            directory.check_membership(conversation.id, users["Carol"].id)

    def test_everyone_is_in_global(self, directory, users):
        for user in users.values():
            assert directory.check_membership("global", user.id).id == "global"


class TestAddMember:
    def test_adds_without_touching_updated_at(self, directory, repository, users, clock):
        conversation, _ = directory.create(users["Alice"].id, ["Bob"])
        clock.advance(minutes=5)

        directory.add_member(conversation, "carol")

        updated = repository.get_conversation(conversation.id)
        assert users["Carol"].id in updated.member_ids
        assert updated.updated_at == conversation.updated_at

    def test_existing_member_conflict(self, directory, users):
        conversation, _ = directory.create(users["Alice"].id, ["Bob"])

        with pytest.raises(Conflict):
            directory.add_member(conversation, "BOB")

    def test_unknown_user(self, directory, users):
        conversation, _ = directory.create(users["Alice"].id, ["Bob"])

        with pytest.raises(NotFound):
            directory.add_member(conversation, "ghost")

    def test_dedup_follows_new_membership(self, directory, users):
        conversation, _ = directory.create(users["Alice"].id, ["Bob"])
        directory.add_member(conversation, "Carol")

        trio, created = directory.create(users["Alice"].id, ["Bob", "Carol"])
        pair, pair_created = directory.create(users["Alice"].id, ["Bob"])

        assert created is False
        assert trio.id == conversation.id
        assert pair_created is True
        assert pair.id != conversation.id


class TestLeave:
    def test_global_cannot_be_left(self, directory, users):
        global_room = directory.check_membership("global", users["Alice"].id)

        with pytest.raises(Forbidden):
            directory.leave(global_room, users["Alice"].id)

    def test_leaving_with_others_remaining(self, directory, repository, users):
        conversation, _ = directory.create(users["Alice"].id, ["Bob"])

        deleted = directory.leave(conversation, users["Alice"].id)

        assert deleted is False
        remaining = repository.get_conversation(conversation.id)
        assert remaining.member_ids == [users["Bob"].id]

    def test_last_member_deletes(self, directory, repository, users):
        conversation, _ = directory.create(users["Alice"].id, ["Bob"])
        directory.leave(conversation, users["Alice"].id)

        conversation = directory.check_membership(conversation.id, users["Bob"].id)
        deleted = directory.leave(conversation, users["Bob"].id)

        assert deleted is True
        assert repository.get_conversation(conversation.id) is None

    def test_left_members_can_start_over(self, directory, users):
        conversation, _ = directory.create(users["Alice"].id, ["Bob", "Carol"])
        directory.leave(conversation, users["Carol"].id)

        pair, created = directory.create(users["Bob"].id, ["Alice"])

        assert created is False
        assert pair.id == conversation.id


class TestCreatorProfile:
    def test_creator_without_profile_not_found(self, directory, repository, users):
        with pytest.raises(NotFound):
            directory.create("no-such-profile", ["Bob"])

        assert repository.list_user_conversations(users["Bob"].id) == []


class TestRekeyedDuplicates:
    def test_most_recently_active_room_wins(self, directory, repository, users, clock):
        pair, _ = directory.create(users["Alice"].id, ["Bob"])
        trio, _ = directory.create(users["Alice"].id, ["Bob", "Carol"])
        directory.leave(trio, users["Carol"].id)

        clock.advance(seconds=5)
        repository.append_message(trio.id, users["Alice"].id, "still here")
        found, created = directory.create(users["Bob"].id, ["Alice"])
        assert created is False
        assert found.id == trio.id

        clock.advance(seconds=5)
        repository.append_message(pair.id, users["Bob"].id, "over here")
        found, _ = directory.create(users["Bob"].id, ["Alice"])
        assert found.id == pair.id
