"""
Tests for UserRepository.list_all_users: filtering, search, sorting and pagination.
"""

from unittest.mock import MagicMock

import pytest

from app.api.v1.repositories import UserRepository
from app.api.v1.schemas import UserFilter
from app.core.models import InvalidSortFieldError, InvalidSortOrderError


@pytest.fixture
async def five_users(repo, make_user):
    """Five users created in non-alphabetical order."""
    created = []
    for name, email in [
        ("Carol", "carol@example.com"),
        ("Alice", "alice@example.com"),
        ("Erin", "erin@example.com"),
        ("Bob", "bob@example.com"),
        ("Dave", "dave@example.com"),
    ]:
        created.append(await repo.create(make_user(name, email)))
    return created


class TestPagination:

    @pytest.mark.anyio
    async def test_first_page_sorted_by_email(self, repo, five_users):
        """
        Arrange: five users
        Act: first page of two, sorted by email ascending
        Assert: two users in email order, total of five
        """
        page = await repo.list_all_users(UserFilter(sort="email", order="asc", page=1, page_size=2))

        assert page.total == 5
        assert page.page == 1
        assert page.page_size == 2
        assert [u.email for u in page.items] == ["alice@example.com", "bob@example.com"]

    @pytest.mark.anyio
    async def test_last_page(self, repo, five_users):
        page = await repo.list_all_users(UserFilter(sort="email", order="asc", page=3, page_size=2))

        assert page.total == 5
        assert [u.email for u in page.items] == ["erin@example.com"]

    @pytest.mark.anyio
    async def test_sort_by_name_desc(self, repo, five_users):
        page = await repo.list_all_users(UserFilter(sort="name", order="desc", page=1, page_size=10))

        assert [u.name for u in page.items] == ["Erin", "Dave", "Carol", "Bob", "Alice"]

    @pytest.mark.anyio
    async def test_deleted_users_are_excluded(self, repo, five_users):
        await repo.delete(five_users[0].id)

        page = await repo.list_all_users(UserFilter(sort="email", order="asc"))

        assert page.total == 4
        assert "carol@example.com" not in [u.email for u in page.items]

    @pytest.mark.anyio
    async def test_items_carry_roles(self, repo, five_users):
        await repo.assign_role(five_users[1].id, "admin")

        page = await repo.list_all_users(UserFilter(sort="email", order="asc", page_size=1))

        assert page.items[0].email == "alice@example.com"
        assert page.items[0].is_admin()


class TestRoleFilter:

    @pytest.mark.anyio
    async def test_user_with_two_roles_counted_once(self, repo, make_user):
        """
        Arrange: one user with admin and editor, one user with editor only
        Act: list users holding admin
        Assert: the admin is listed and counted exactly once
        """
        both = await repo.create(make_user("Both", "both@example.com"))
        editor = await repo.create(make_user("Editor", "editor@example.com"))
        await repo.assign_role(both.id, "admin")
        await repo.assign_role(both.id, "editor")
        await repo.assign_role(editor.id, "editor")

        page = await repo.list_all_users(UserFilter(role="admin", sort="email", order="asc"))

        assert page.total == 1
        assert [u.id for u in page.items] == [both.id]
        assert page.items[0].role_names() == ["admin", "editor"]

    @pytest.mark.anyio
    async def test_role_filter_counts_distinct_users(self, repo, make_user):
        for i in range(3):
            user = await repo.create(make_user(f"Editor {i}", f"editor{i}@example.com"))
            await repo.assign_role(user.id, "editor")
            await repo.assign_role(user.id, "user")
        await repo.create(make_user("Plain", "plain@example.com"))

        page = await repo.list_all_users(UserFilter(role="editor", sort="email", order="asc", page_size=2))

        assert page.total == 3
        assert len(page.items) == 2

    @pytest.mark.anyio
    async def test_unknown_role_matches_nobody(self, repo, five_users):
        page = await repo.list_all_users(UserFilter(role="ghost", sort="email", order="asc"))

        assert page.total == 0
        assert page.items == []


class TestSearch:

    @pytest.mark.anyio
    async def test_percent_is_matched_literally(self, repo, make_user):
        """
        Arrange: users named "50%Off" and "50X"
        Act: search for "50%"
        Assert: only the literal match is returned
        """
        promo = await repo.create(make_user("50%Off", "promo@example.com"))
        await repo.create(make_user("50X", "fifty@example.com"))

        page = await repo.list_all_users(UserFilter(search="50%", sort="name", order="asc"))

        assert page.total == 1
        assert [u.id for u in page.items] == [promo.id]

    @pytest.mark.anyio
    async def test_underscore_is_matched_literally(self, repo, make_user):
        await repo.create(make_user("snake_case", "snake@example.com"))
        await repo.create(make_user("snakeXcase", "camel@example.com"))

        page = await repo.list_all_users(UserFilter(search="e_c", sort="name", order="asc"))

        assert [u.name for u in page.items] == ["snake_case"]

    @pytest.mark.anyio
    async def test_search_matches_email(self, repo, five_users):
        page = await repo.list_all_users(UserFilter(search="dave@", sort="name", order="asc"))

        assert [u.name for u in page.items] == ["Dave"]

    @pytest.mark.anyio
    async def test_search_combined_with_role(self, repo, five_users):
        await repo.assign_role(five_users[1].id, "admin")
        await repo.assign_role(five_users[3].id, "admin")

        page = await repo.list_all_users(UserFilter(role="admin", search="bob", sort="name", order="asc"))

        assert page.total == 1
        assert page.items[0].name == "Bob"


class TestSortValidation:

    @pytest.mark.anyio
    async def test_invalid_sort_field_runs_no_query(self):
        """
        Arrange: a repository whose session factory records every call
        Act: list with a sort field outside the allow-list
        Assert: InvalidSortFieldError and the store was never touched
        """
        session_factory = MagicMock()
        repo = UserRepository(session_factory)

        with pytest.raises(InvalidSortFieldError) as exc_info:
            await repo.list_all_users(UserFilter(sort="dropTable", order="asc"))

        assert exc_info.value.field == "dropTable"
        session_factory.assert_not_called()

    @pytest.mark.anyio
    async def test_invalid_sort_order_runs_no_query(self):
        session_factory = MagicMock()
        repo = UserRepository(session_factory)

        with pytest.raises(InvalidSortOrderError):
            await repo.list_all_users(UserFilter(sort="email", order="ASC"))

        session_factory.assert_not_called()

    @pytest.mark.anyio
    async def test_injection_attempt_rejected(self, repo, five_users):
        with pytest.raises(InvalidSortFieldError):
            await repo.list_all_users(UserFilter(sort="email; DROP TABLE users", order="asc"))

        assert (await repo.list_all_users(UserFilter(sort="email", order="asc"))).total == 5
