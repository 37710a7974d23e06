"""Property-based tests for scope ownership, audiences and introspection visibility.

Whatever the resource layout and the granted scopes, each resource sees
exactly the scopes it owns, the audiences are the distinct owners, and no
scope is visible to two resources.
"""

from __future__ import annotations

from hypothesis import given
from hypothesis import strategies as st

from oidcore.models.entities import ApiResource, ScopeOwnership
from oidcore.models.tokens import IssuedToken, audience_value
from oidcore.validation.scopes import parse_scope

# --- Shared strategies ---

_name = st.text(alphabet="abcdefghijklmnopqrstuvwxyz0123456789-", min_size=1, max_size=8)


@st.composite
def _layouts(draw: st.DrawFn) -> tuple[dict[str, str], tuple[str, ...]]:
    """A scope -> owner mapping plus a granted scope sequence drawn from it."""
    scopes = draw(st.lists(_name, min_size=1, max_size=12, unique=True))
    resources = draw(st.lists(_name, min_size=1, max_size=4, unique=True))
    owners = {scope: draw(st.sampled_from(resources)) for scope in scopes}
    granted = draw(st.lists(st.sampled_from(scopes), max_size=12, unique=True))
    return owners, tuple(granted)


def _ownership(owners: dict[str, str]) -> ScopeOwnership:
    by_resource: dict[str, list[str]] = {}
    for scope, resource in owners.items():
        by_resource.setdefault(resource, []).append(scope)
    return ScopeOwnership.from_resources(
        ApiResource(name=name, scopes=tuple(scopes)) for name, scopes in by_resource.items()
    )


def _record(ownership: ScopeOwnership, granted: tuple[str, ...]) -> IssuedToken:
    return IssuedToken(
        key="k",
        client_id="client1",
        scopes=granted,
        scope_owners=ownership.owners_of(granted),
        audiences=ownership.audiences(granted),
        created_at=0,
        not_before=0,
        expires_at=1,
    )


@given(_layouts())
def test_each_resource_sees_only_its_scopes(layout: tuple[dict[str, str], tuple[str, ...]]) -> None:
    owners, granted = layout
    ownership = _ownership(owners)
    record = _record(ownership, granted)

    seen: list[str] = []
    for resource in set(owners.values()):
        visible = record.visible_to(resource)
        assert all(owners[scope] == resource for scope in visible)
        assert visible == tuple(scope for scope in granted if owners[scope] == resource)
        seen.extend(visible)
    assert sorted(seen) == sorted(granted)


@given(_layouts())
def test_audiences_are_distinct_owners_in_first_seen_order(
    layout: tuple[dict[str, str], tuple[str, ...]],
) -> None:
    owners, granted = layout
    audiences = _ownership(owners).audiences(granted)

    assert len(set(audiences)) == len(audiences)
    assert set(audiences) == {owners[scope] for scope in granted}
    first_seen = [owners[scope] for scope in granted]
    assert list(audiences) == sorted(set(first_seen), key=first_seen.index)


@given(_layouts())
def test_non_audience_resources_see_nothing(layout: tuple[dict[str, str], tuple[str, ...]]) -> None:
    owners, granted = layout
    ownership = _ownership(owners)
    record = _record(ownership, granted)
    audiences = set(ownership.audiences(granted))

    for resource in set(owners.values()) - audiences:
        assert record.visible_to(resource) == ()


@given(_layouts())
def test_audience_serialization(layout: tuple[dict[str, str], tuple[str, ...]]) -> None:
    owners, granted = layout
    audiences = _ownership(owners).audiences(granted)
    value = audience_value(audiences)

    if not audiences:
        assert value is None
    elif len(audiences) == 1:
        assert value == audiences[0]
    else:
        assert value == list(audiences)


@given(st.lists(_name, max_size=10), st.sampled_from([" ", "  ", "\t"]))
def test_parse_scope_is_stable(scopes: list[str], separator: str) -> None:
    parsed = parse_scope(separator.join(scopes))

    assert len(set(parsed)) == len(parsed)
    assert set(parsed) == set(scopes)
    assert parse_scope(" ".join(parsed)) == parsed
