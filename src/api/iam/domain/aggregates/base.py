"""Behaviour shared by the IAM aggregates.

Every aggregate wraps one entity together with a settings object, a
statistics object, a few membership id sets and a buffer of pending domain
events. The membership sets are described declaratively with
:class:`Membership` so adding, removing and capacity checks are written
once. Counters capped by a setting without an id set behind them are
described with :class:`Quota`.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from datetime import datetime
from enum import StrEnum
from typing import TYPE_CHECKING, Any, ClassVar

from iam.domain.entities.base import utc_now
from iam.domain.exceptions import CapacityError, StateError, ValidationError

if TYPE_CHECKING:
    from iam.domain.events import IAMEvent
    from iam.domain.observability import AggregateProbe

DEFAULT_LIMITS_WARNING_RATIO = 0.9


@dataclass(frozen=True)
class Quota:
    """A statistics counter capped by a settings field.

    Attributes:
        label: Singular, human readable name used in messages
        count_field: Statistics field holding the count
        max_setting: Settings field capping the count
    """

    label: str
    count_field: str
    max_setting: str


@dataclass(frozen=True)
class Membership(Quota):
    """Describes one membership set held by an aggregate.

    Attributes, besides the :class:`Quota` ones:
        attribute: Name of the aggregate attribute holding the id set
        allow_setting: Settings flag that must be set to add members, if any
        added_event: Event class recorded on addition
        removed_event: Event class recorded on removal
        member_field: Name of the member id field on both events
        entity_add: Method of the wrapped entity mirroring an addition
        entity_remove: Method of the wrapped entity mirroring a removal
    """

    attribute: str
    allow_setting: str | None
    added_event: type[IAMEvent]
    removed_event: type[IAMEvent]
    member_field: str
    entity_add: str | None = None
    entity_remove: str | None = None


class AggregateRoot:
    """Membership, settings, statistics and status handling for aggregates.

    Concrete aggregates are dataclasses declaring ``settings``,
    ``statistics``, ``last_updated``, ``limits_warning_ratio``,
    ``_pending_events``, ``_probe`` and one id set per entry in
    ``MEMBERSHIPS``, and expose the wrapped entity through ``root``.

    ``ENTITY_LIMITS`` maps settings fields onto limits of the wrapped
    entity. For those fields the entity value is the one enforced, and
    settings updates are written through to the entity.
    """

    AGGREGATE_NAME: ClassVar[str] = ""
    MEMBERSHIPS: ClassVar[Mapping[str, Membership]] = {}
    QUOTAS: ClassVar[Mapping[str, Quota]] = {}
    ENTITY_LIMITS: ClassVar[Mapping[str, str]] = {}
    SETTINGS_UPDATED: ClassVar[type[IAMEvent]]
    STATUS_CHANGED: ClassVar[type[IAMEvent]]
    LIMITS_WARNING: ClassVar[type[IAMEvent]]

    settings: Any
    statistics: Any
    last_updated: datetime
    limits_warning_ratio: float
    _pending_events: list[IAMEvent]
    _probe: AggregateProbe

    @property
    def root(self) -> Any:
        raise NotImplementedError

    @property
    def id(self) -> Any:
        return self.root.id

    @property
    def status(self) -> StrEnum:
        return self.root.status

    @property
    def domain_events(self) -> tuple[IAMEvent, ...]:
        """Snapshot of the pending events; the buffer is left untouched."""
        return tuple(self._pending_events)

    def collect_events(self) -> list[IAMEvent]:
        """Return and clear pending domain events.

        Returns:
            List of pending domain events in the order they were recorded
        """
        events = self._pending_events.copy()
        self._pending_events.clear()
        return events

    def clear_domain_events(self) -> None:
        self._pending_events.clear()

    def _record(self, event_type: type[IAMEvent], **payload: Any) -> None:
        payload.setdefault("occurred_at", utc_now())
        self._pending_events.append(
            event_type(**{event_type.AGGREGATE_ID_FIELD: self.id.value}, **payload)
        )

    def _touch(self) -> None:
        self.last_updated = utc_now()

    # Membership

    def _members(self, key: str) -> set:
        return getattr(self, self.MEMBERSHIPS[key].attribute)

    def members_of(self, key: str) -> frozenset:
        return frozenset(self._members(key))

    def has(self, key: str, member_id: Any) -> bool:
        return member_id in self._members(key)

    def can_add(self, key: str) -> bool:
        """Whether another member fits under the allow flag and the maximum."""
        membership = self.MEMBERSHIPS[key]
        if membership.allow_setting is not None and not getattr(
            self.settings, membership.allow_setting
        ):
            return False
        count = getattr(self.statistics, membership.count_field)
        return count < self.maximum(membership.max_setting)

    def _add(self, key: str, member_id: Any) -> None:
        """Add an id to a membership set.

        Raises:
            StateError: If the id is already a member
            CapacityError: If the set is closed or full
        """
        membership = self.MEMBERSHIPS[key]
        members = self._members(key)
        if member_id in members:
            raise StateError(
                f"{membership.label.capitalize()} {member_id} already exists "
                f"in {self.AGGREGATE_NAME} {self.id}"
            )
        if not self.can_add(key):
            limit = self.maximum(membership.max_setting)
            self._probe.capacity_exceeded(
                aggregate=self.AGGREGATE_NAME,
                aggregate_id=self.id.value,
                collection=key,
                limit=limit,
            )
            raise CapacityError(
                f"Cannot add more {key} to {self.AGGREGATE_NAME} {self.id} "
                f"(limit: {limit})"
            )

        if membership.entity_add is not None:
            getattr(self.root, membership.entity_add)(member_id)
        members.add(member_id)
        self._adjust_count(membership.count_field, 1)
        self._record(
            membership.added_event, **{membership.member_field: member_id.value}
        )
        self._probe.member_added(
            aggregate=self.AGGREGATE_NAME,
            aggregate_id=self.id.value,
            collection=key,
            member_id=member_id.value,
        )

    def _remove(self, key: str, member_id: Any) -> None:
        """Remove an id from a membership set.

        Raises:
            StateError: If the id is not a member
        """
        membership = self.MEMBERSHIPS[key]
        members = self._members(key)
        if member_id not in members:
            raise StateError(
                f"{membership.label.capitalize()} {member_id} not found "
                f"in {self.AGGREGATE_NAME} {self.id}"
            )

        members.discard(member_id)
        if membership.entity_remove is not None:
            getattr(self.root, membership.entity_remove)(member_id)
        self._adjust_count(membership.count_field, -1)
        self._record(
            membership.removed_event, **{membership.member_field: member_id.value}
        )
        self._probe.member_removed(
            aggregate=self.AGGREGATE_NAME,
            aggregate_id=self.id.value,
            collection=key,
            member_id=member_id.value,
        )

    def _adjust_count(self, count_field: str, delta: int) -> None:
        current = getattr(self.statistics, count_field)
        self.statistics = replace(
            self.statistics, **{count_field: max(current + delta, 0)}
        )
        self._touch()

    # Settings and statistics

    @property
    def quotas(self) -> dict[str, Quota]:
        """Every capped counter, membership sets first."""
        return {**self.MEMBERSHIPS, **self.QUOTAS}

    def maximum(self, max_setting: str) -> int:
        """Cap enforced for a ``max_*`` settings field."""
        limit = self.ENTITY_LIMITS.get(max_setting)
        if limit is not None:
            return self._entity_limit(limit)
        return getattr(self.settings, max_setting)

    def _entity_limit(self, name: str) -> int:
        return getattr(self.root.limits, name)

    def _update_entity_limits(self, **limits: int) -> None:
        self.root.update_limits(**limits)

    def _sync_entity_limits(self, from_settings: bool) -> None:
        """Bring the mirrored maxima of settings and entity into agreement.

        Args:
            from_settings: Write the settings maxima onto the entity when
                True, otherwise copy the entity limits into the settings
        """
        if not self.ENTITY_LIMITS:
            return
        if from_settings:
            self._update_entity_limits(
                **{
                    limit: getattr(self.settings, setting)
                    for setting, limit in self.ENTITY_LIMITS.items()
                }
            )
        else:
            self.settings = replace(
                self.settings,
                **{
                    setting: self._entity_limit(limit)
                    for setting, limit in self.ENTITY_LIMITS.items()
                },
            )

    def is_feature_enabled(self, feature: str) -> bool:
        return feature in self.settings.features

    def update_settings(self, **changes: Any) -> None:
        """Apply a partial settings update.

        A ``max_*`` value may not drop below the live count it caps.
        Maxima listed in ``ENTITY_LIMITS`` are written to the wrapped
        entity as well.

        Raises:
            ValidationError: If a key is unknown or a maximum is negative
            CapacityError: If a maximum would fall below the current count
        """
        known = {f.name for f in fields(self.settings)}
        unknown = sorted(set(changes) - known)
        if unknown:
            raise ValidationError(
                f"Unknown {self.AGGREGATE_NAME} settings: {', '.join(unknown)}"
            )

        for quota in self.quotas.values():
            if quota.max_setting not in changes:
                continue
            new_max = changes[quota.max_setting]
            if not isinstance(new_max, int) or new_max < 0:
                raise ValidationError(
                    f"{quota.max_setting} must be a non-negative integer"
                )
            current = getattr(self.statistics, quota.count_field)
            if new_max < current:
                raise CapacityError(
                    f"{quota.max_setting} cannot be lower than the current "
                    f"{quota.label} count ({current})"
                )

        if "features" in changes:
            changes["features"] = frozenset(changes["features"])
        if "custom_settings" in changes:
            changes["custom_settings"] = dict(changes["custom_settings"])

        entity_limits = {
            limit: changes[setting]
            for setting, limit in self.ENTITY_LIMITS.items()
            if setting in changes
        }
        if entity_limits:
            self._update_entity_limits(**entity_limits)
        self.settings = replace(self.settings, **changes)
        self._touch()
        self._record(self.SETTINGS_UPDATED, changes=dict(changes))
        self._probe.settings_updated(
            aggregate=self.AGGREGATE_NAME,
            aggregate_id=self.id.value,
            changes=dict(changes),
        )

    def update_statistics(self, **counts: int) -> None:
        """Overwrite statistics counters, then check them against the limits.

        Raises:
            ValidationError: If a counter is unknown or negative
        """
        known = {f.name for f in fields(self.statistics)}
        unknown = sorted(set(counts) - known)
        if unknown:
            raise ValidationError(
                f"Unknown {self.AGGREGATE_NAME} statistics: {', '.join(unknown)}"
            )
        for name, value in counts.items():
            if not isinstance(value, int) or value < 0:
                raise ValidationError(f"{name} must be a non-negative integer")

        self.statistics = replace(self.statistics, **counts)
        self._touch()
        self.check_limits()

    def check_limits(self) -> tuple[str, ...]:
        """Emit a single limits warning for counters close to their maximum.

        Returns:
            The warnings that were emitted, empty when every counter is fine
        """
        warnings = []
        for key, quota in self.quotas.items():
            count = getattr(self.statistics, quota.count_field)
            maximum = self.maximum(quota.max_setting)
            if maximum > 0 and count >= maximum * self.limits_warning_ratio:
                warnings.append(
                    f"{key} count {count} is approaching the limit of {maximum}"
                )

        if warnings:
            self._record(self.LIMITS_WARNING, warnings=tuple(warnings))
            self._probe.limits_warning(
                aggregate=self.AGGREGATE_NAME,
                aggregate_id=self.id.value,
                warnings=tuple(warnings),
            )
        return tuple(warnings)

    # Status

    def change_status(
        self, new_status: StrEnum | str, reason: str | None = None
    ) -> None:
        """Change the status of the wrapped entity and record the transition.

        Raises:
            StateError: If the status is not recognized or the transition is
                not allowed
        """
        entity = self.root
        try:
            target = entity.STATUS_ENUM(new_status)
        except ValueError as e:
            raise StateError(
                f"Unsupported {self.AGGREGATE_NAME} status: {new_status!r}"
            ) from e

        old_status = entity.status
        if old_status == "disabled" and target == "active":
            self._validate_activation_from_disabled()

        entity.change_status(target)
        self._status_changed(old_status, reason)

    def _status_changed(self, old_status: StrEnum, reason: str | None) -> None:
        new_status = self.root.status
        self._touch()
        self._record(
            self.STATUS_CHANGED,
            old_status=old_status.value,
            new_status=new_status.value,
            reason=reason,
        )
        self._probe.status_changed(
            aggregate=self.AGGREGATE_NAME,
            aggregate_id=self.id.value,
            old_status=old_status.value,
            new_status=new_status.value,
            reason=reason,
        )

    def _validate_activation_from_disabled(self) -> None:
        """Hook run before a DISABLED aggregate is reactivated.

        Reactivation is currently always allowed.
        """
