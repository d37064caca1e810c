from __future__ import annotations

import pytest

from tift.errors import StateMachineError
from tift.statemachine import TERMINATE, State, Status, create_state_machine


class Journal:
    def __init__(self) -> None:
        self.events: list[str] = []


def _two_state_machine():
    def enter(name: str):
        return lambda journal, machine: journal.events.append(f"enter:{name}")

    def leave(name: str):
        return lambda journal, machine: journal.events.append(f"leave:{name}")

    def first_action(message: str, journal: Journal) -> str | None:
        journal.events.append(f"first:{message}")
        return "second" if message == "next" else None

    async def second_action(message: str, journal: Journal) -> str | None:
        journal.events.append(f"second:{message}")
        return TERMINATE if message == "done" else None

    return create_state_machine(
        "first",
        ("first", State(on_action=first_action, on_enter=enter("first"), on_leave=leave("first"))),
        ("second", State(on_action=second_action, on_enter=enter("second"), on_leave=leave("second"))),
    )


@pytest.mark.asyncio
async def test_machine_runs_through_its_lifecycle() -> None:
    machine = _two_state_machine()
    journal = Journal()
    assert machine.status is Status.NOT_STARTED

    await machine.start(journal)
    assert machine.status is Status.RUNNING
    assert machine.current_state == "first"

    await machine.send("stay", journal)
    assert machine.current_state == "first"

    await machine.send("next", journal)
    assert machine.current_state == "second"

    await machine.send("done", journal)
    assert machine.get_status() is Status.FINISHED
    assert machine.current_state is None
    assert journal.events == [
        "enter:first",
        "first:stay",
        "first:next",
        "leave:first",
        "enter:second",
        "second:done",
        "leave:second",
    ]


@pytest.mark.asyncio
async def test_finished_machine_can_be_restarted() -> None:
    machine = _two_state_machine()
    journal = Journal()
    await machine.start(journal)
    await machine.send("next", journal)
    await machine.send("done", journal)

    await machine.start(journal)

    assert machine.status is Status.RUNNING
    assert machine.current_state == "first"


@pytest.mark.asyncio
async def test_running_machine_can_not_be_started_again() -> None:
    machine = _two_state_machine()
    await machine.start(Journal())

    with pytest.raises(StateMachineError, match="already running"):
        await machine.start(Journal())


@pytest.mark.asyncio
async def test_send_requires_a_running_machine() -> None:
    machine = _two_state_machine()

    with pytest.raises(StateMachineError):
        await machine.send("next", Journal())


def test_initial_state_must_exist() -> None:
    with pytest.raises(StateMachineError, match="initial state"):
        create_state_machine("missing", ("present", State(on_action=lambda message, obj: None)))


@pytest.mark.asyncio
async def test_on_enter_can_finish_the_machine() -> None:
    machine = create_state_machine(
        "only",
        (
            "only",
            State(
                on_action=lambda message, obj: None,
                on_enter=lambda obj, ops: ops.set_status(Status.FINISHED),
            ),
        ),
    )

    await machine.start(object())

    assert machine.status is Status.FINISHED


@pytest.mark.asyncio
async def test_on_enter_can_redirect_to_another_state() -> None:
    machine = create_state_machine(
        "start",
        ("start", State(on_action=lambda message, obj: None, on_enter=lambda obj, ops: ops.set_state("end"))),
        ("end", State(on_action=lambda message, obj: TERMINATE)),
    )

    await machine.start(object())
    assert machine.current_state == "end"

    with pytest.raises(StateMachineError, match="does not contain state"):
        machine.set_state("nowhere")
