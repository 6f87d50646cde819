"""
Actor capabilities (``timesheet_kernel.domain.actors``).

A closed union of frozen dataclasses describing *who* requests a
transition and in which capacity.  Guards dispatch on it with ``match``
rather than through a role class hierarchy.

    Actor = Owner | Manager | UserHead | Admin

The manager and user-head relations are independent: a ``Manager``
actor is authorized through ``User.manager_id`` only and a ``UserHead``
actor through ``User.user_head_id`` only.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID

from timesheet_kernel.domain.values import Role, User


@dataclass(frozen=True)
class Owner:
    """The user acting on their own timesheet."""

    user_id: UUID


@dataclass(frozen=True)
class Manager:
    """A manager acting on a direct report."""

    manager_id: UUID


@dataclass(frozen=True)
class UserHead:
    """A user head acting on a delegated user."""

    head_id: UUID


@dataclass(frozen=True)
class Admin:
    """An administrator.

    ``override`` marks correction mode: it bypasses completeness and
    ordering guards on submit and unlocks admin-revert.
    """

    admin_id: UUID
    override: bool = False


Actor = Owner | Manager | UserHead | Admin


def actor_id(actor: Actor) -> UUID:
    """Identity of the person behind ``actor``."""
    match actor:
        case Owner(user_id=uid):
            return uid
        case Manager(manager_id=mid):
            return mid
        case UserHead(head_id=hid):
            return hid
        case Admin(admin_id=aid):
            return aid
    raise TypeError(f"Unknown actor type: {type(actor).__name__}")


def actor_kind(actor: Actor) -> str:
    """Stable lowercase label for audit rows and logs."""
    match actor:
        case Owner():
            return "owner"
        case Manager():
            return "manager"
        case UserHead():
            return "user_head"
        case Admin(override=True):
            return "admin_override"
        case Admin():
            return "admin"
    raise TypeError(f"Unknown actor type: {type(actor).__name__}")


def is_override(actor: Actor) -> bool:
    """True only for an Admin actor carrying the override flag."""
    return isinstance(actor, Admin) and actor.override


def may_submit(actor: Actor, user: User) -> bool:
    """Owner, the user's head, or an admin in override mode."""
    match actor:
        case Owner(user_id=uid):
            return uid == user.id
        case UserHead(head_id=hid):
            return user.user_head_id is not None and hid == user.user_head_id
        case Admin(admin_id=aid, override=override):
            return override or aid == user.id
        case Manager():
            return False
    return False


def may_review(actor: Actor, user: User) -> bool:
    """Approve/reject: the user's manager, the user's head, or any admin."""
    match actor:
        case Manager(manager_id=mid):
            return user.manager_id is not None and mid == user.manager_id
        case UserHead(head_id=hid):
            return user.user_head_id is not None and hid == user.user_head_id
        case Admin():
            return True
        case Owner():
            return False
    return False


def may_revert(actor: Actor) -> bool:
    """admin-revert requires an admin in override mode."""
    return is_override(actor)


def holds_claimed_role(actor: Actor, person: User) -> bool:
    """Whether directory entry ``person`` backs the capacity ``actor`` claims.

    ``Admin`` needs an admin account and ``Manager`` a manager account.
    Owner and user-head capacities come from the target user's relations,
    so any directory entry with the actor's id backs them.
    """
    if person.id != actor_id(actor):
        return False
    match actor:
        case Admin():
            return person.role == Role.ADMIN
        case Manager():
            return person.role == Role.MANAGER
    return True
