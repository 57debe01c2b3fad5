"""
Superior resolver tests.
"""

import pytest

from deptmgr.domain.role_chain import RoleDefinition


def ids(users):
    return [user.id for user in users]


@pytest.mark.asyncio
async def test_candidates_are_active_members_of_superior_role(resolver):
    assert ids(resolver.candidates_for("BDE")) == ["u-x", "u-y"]
    assert ids(resolver.candidates_for(RoleDefinition.AD)) == ["u-v"]
    assert ids(resolver.candidates_for("Sr. Portfolio Manager")) == ["u-t"]


@pytest.mark.asyncio
async def test_every_candidate_holds_the_superior_role(resolver, directory):
    for role in RoleDefinition:
        superior = resolver.chain.superior_of(role)
        for candidate in resolver.candidates_for(role):
            assert candidate.is_active
            assert candidate.role == superior.display_name


@pytest.mark.asyncio
async def test_terminal_role_has_no_field_and_no_candidates(resolver):
    assert resolver.field_name_for("Vertical") is None
    assert resolver.candidates_for("Vertical") == []
    assert resolver.options_for("Vertical") == []


@pytest.mark.asyncio
async def test_empty_superior_pool_yields_empty_list(resolver):
    assert resolver.candidates_for("TL") == []
    assert resolver.field_name_for("TL") == "assignedAGM"


@pytest.mark.asyncio
async def test_options_for_use_ids_and_names(resolver):
    options = resolver.options_for("BDE")
    assert [(o.value, o.label) for o in options] == [("u-x", "Xavier"), ("u-y", "Yamini")]


@pytest.mark.asyncio
async def test_is_eligible(resolver):
    assert resolver.is_eligible("BDE", "u-x")
    assert not resolver.is_eligible("BDE", "u-z")
    assert not resolver.is_eligible("BDE", "u-a")
    assert not resolver.is_eligible("BDE", None)


@pytest.mark.asyncio
async def test_current_superior_resolves_valid_pointer(resolver, directory):
    superior = resolver.current_superior(directory.get("u-a"))
    assert superior is not None
    assert superior.id == "u-x"


@pytest.mark.asyncio
async def test_inactive_superior_is_not_current(directory_api, resolver, directory):
    directory_api.users[1]["isActive"] = False
    await directory.refresh()

    arjun = directory.get("u-a")
    assert resolver.current_superior(arjun) is None
    assert arjun.superior_id == "u-x"


@pytest.mark.asyncio
async def test_pointer_to_wrong_role_is_not_current(directory_api, resolver, directory):
    directory_api.users[4]["assignedSRBDE"] = "u-v"
    await directory.refresh()

    assert resolver.current_superior(directory.get("u-a")) is None
