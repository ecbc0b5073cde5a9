"""Wire messages exchanged with display surfaces and trigger sources.

Inbound messages are a discriminated union on ``type``. Outbound messages use
camelCase keys (``racerId``, ``totalTime``, ...) because that is what the
scoreboard, operator panel, podium and racer pages read.
"""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel

from icekart.race.errors import MalformedMessage
from icekart.race.models import LapRecord, Racer, RaceState, RaceStatus

# ============================================================================
# Inbound
# ============================================================================


class _Inbound(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class ActionMessage(_Inbound):
    type: Literal["action"]
    payload: Literal["start", "stop", "reset"]


class LapMessage(_Inbound):
    type: Literal["lap"]
    racer_id: str


class CheckpointMessage(_Inbound):
    type: Literal["checkpoint"]
    racer_id: str


class DisqualifyMessage(_Inbound):
    type: Literal["disqualify"]
    racer_id: str


class RemoveMessage(_Inbound):
    type: Literal["remove"]
    name: str


class RegisterMessage(_Inbound):
    type: Literal["register"]
    name: str | None = None


InboundMessage = Annotated[
    ActionMessage | LapMessage | CheckpointMessage | DisqualifyMessage | RemoveMessage | RegisterMessage,
    Field(discriminator="type"),
]

_inbound_adapter: TypeAdapter[InboundMessage] = TypeAdapter(InboundMessage)


def parse_inbound(raw: str | bytes) -> InboundMessage:
    """Parse and validate one inbound JSON envelope.

    Raises:
        MalformedMessage: If the payload is not JSON, has an unknown ``type``,
            or is missing a required field
    """
    try:
        return _inbound_adapter.validate_json(raw)
    except ValidationError as e:
        first = e.errors()[0] if e.errors() else {}
        location = ".".join(str(part) for part in first.get("loc", ()))
        detail = first.get("msg", "invalid message")
        raise MalformedMessage(f"{location}: {detail}" if location else detail) from e


# ============================================================================
# Outbound
# ============================================================================


class _Outbound(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class LapView(_Outbound):
    lap_number: int
    lap_time: int
    splits: list[int]

    @classmethod
    def from_record(cls, record: LapRecord) -> LapView:
        return cls(lap_number=record.lap_number, lap_time=record.lap_time, splits=list(record.splits))


class RacerView(_Outbound):
    """Racer as seen by display surfaces."""

    id: str
    name: str
    avatar: str
    laps: int
    best_lap: int | None
    last_lap_timestamp: int
    total_time: int
    disqualified: bool
    checkpoints: int
    gap: int
    finished: bool
    history: list[LapView]
    current_lap_splits: list[int]

    @classmethod
    def from_racer(cls, racer: Racer) -> RacerView:
        return cls(
            id=racer.id,
            name=racer.name,
            avatar=racer.avatar,
            laps=racer.laps,
            best_lap=racer.best_lap,
            last_lap_timestamp=racer.last_lap_timestamp,
            total_time=racer.total_time,
            disqualified=racer.disqualified,
            checkpoints=racer.checkpoints,
            gap=racer.gap,
            finished=racer.finished,
            history=[LapView.from_record(r) for r in racer.history],
            current_lap_splits=list(racer.current_lap_splits),
        )


class InitMessage(_Outbound):
    """Full snapshot, sent on attach and after every operator action."""

    type: Literal["init"] = "init"
    status: RaceStatus
    racers: list[RacerView]
    start_time: int | None
    end_time: int | None
    total_laps: int
    checkpoints_per_lap: int

    @classmethod
    def build(cls, state: RaceState, racers: list[Racer]) -> InitMessage:
        return cls(
            status=state.status,
            racers=[RacerView.from_racer(r) for r in racers],
            start_time=state.start_time,
            end_time=state.end_time,
            total_laps=state.total_laps,
            checkpoints_per_lap=state.checkpoints_per_lap,
        )


class UpdateMessage(_Outbound):
    """Racer list plus phase, sent after every progress-affecting event."""

    type: Literal["update"] = "update"
    racers: list[RacerView]
    status: RaceStatus
    end_time: int | None

    @classmethod
    def build(cls, state: RaceState, racers: list[Racer]) -> UpdateMessage:
        return cls(
            racers=[RacerView.from_racer(r) for r in racers],
            status=state.status,
            end_time=state.end_time,
        )


class ErrorMessage(_Outbound):
    """Rejection sent only to the connection that made the request."""

    type: Literal["error"] = "error"
    detail: str


class ResultsResponse(_Outbound):
    racers: list[RacerView]
