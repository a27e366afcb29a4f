"""Tests for onboarding.graph and onboarding.state.apply_updates."""

import pytest

from onboarding.batch import AgentCreationStatus, CreationState
from onboarding.graph import MULTI_SPINE, SINGLE_SPINE, back, is_terminal, previous_step
from onboarding.state import (
    ContentPhase,
    CreationType,
    MultiAgentState,
    SingleAgentState,
    StepId,
    WizardMode,
    WizardState,
    apply_updates,
)

S = WizardMode.SINGLE
M = WizardMode.MULTI


@pytest.mark.parametrize(
    "mode,step,expected",
    [
        (S, StepId.SELECT_CREATION_TYPE, StepId.SELECT_MODE),
        (S, StepId.SELECT_TEMPLATE, StepId.SELECT_CREATION_TYPE),
        (S, StepId.CREATION_CONFIRM, StepId.DEFINE_NAME),
        (S, StepId.EDIT_RULES, StepId.CREATION_CONFIRM),
        (S, StepId.EDIT_STEPS, StepId.EDIT_RULES),
        (S, StepId.EDIT_FAQ, StepId.EDIT_STEPS),
        (S, StepId.FINAL_CONFIRMATION, StepId.EDIT_FAQ),
        (M, StepId.SELECT_TEMPLATES, StepId.SELECT_MODE),
        (M, StepId.REVIEW_AGENTS, StepId.SELECT_TEMPLATES),
        (M, StepId.DEFINE_MULTI_NAMES, StepId.REVIEW_AGENTS),
        (M, StepId.BATCH_CREATION, StepId.DEFINE_MULTI_NAMES),
        (M, StepId.CREATION_CONFIRM, StepId.BATCH_CREATION),
        (M, StepId.EDIT_AGENTS, StepId.CREATION_CONFIRM),
        (M, StepId.EDIT_MULTI_AGENT, StepId.BATCH_CREATION),
        (M, StepId.FINAL_CONFIRMATION, StepId.EDIT_MULTI_AGENT),
        (None, StepId.SELECT_MODE, StepId.SELECT_MODE),
        (S, StepId.SELECT_TEMPLATES, StepId.SELECT_MODE),
    ],
)
def test_previous_step(mode: WizardMode | None, step: StepId, expected: StepId) -> None:
    assert previous_step(mode, step) == expected


def test_define_name_depends_on_creation_type() -> None:
    assert previous_step(S, StepId.DEFINE_NAME, CreationType.TEMPLATE) == StepId.SELECT_TEMPLATE
    assert previous_step(S, StepId.DEFINE_NAME, CreationType.SCRATCH) == StepId.SELECT_CREATION_TYPE
    assert previous_step(S, StepId.DEFINE_NAME) == StepId.SELECT_CREATION_TYPE


def test_back_is_deterministic() -> None:
    state = WizardState(
        mode=S,
        current_step=StepId.DEFINE_NAME,
        single=SingleAgentState(creation_type=CreationType.TEMPLATE),
    )
    assert back(state) == back(state)
    assert back(state).current_step == StepId.SELECT_TEMPLATE


def test_spines_share_entry_and_exit() -> None:
    assert SINGLE_SPINE[0] == MULTI_SPINE[0] == StepId.SELECT_MODE
    assert SINGLE_SPINE[-1] == MULTI_SPINE[-1] == StepId.FINAL_CONFIRMATION
    assert is_terminal(StepId.FINAL_CONFIRMATION)
    assert not is_terminal(StepId.EDIT_FAQ)


class TestPhaseUnwind:
    def _state(self, phase: ContentPhase) -> WizardState:
        return WizardState(
            mode=M,
            current_step=StepId.EDIT_MULTI_AGENT,
            multi=MultiAgentState(content_phase=phase, editing_index=1),
        )

    def test_faq_goes_to_steps(self) -> None:
        state = back(self._state(ContentPhase.FAQ))
        assert state.current_step == StepId.EDIT_MULTI_AGENT
        assert state.multi.content_phase == ContentPhase.STEPS
        assert state.multi.editing_index == 1

    def test_steps_goes_to_rules(self) -> None:
        assert back(self._state(ContentPhase.STEPS)).multi.content_phase == ContentPhase.RULES

    def test_rules_leaves_the_step(self) -> None:
        assert back(self._state(ContentPhase.RULES)).current_step == StepId.BATCH_CREATION


class TestBatchBoundary:
    def _state(self, *states: CreationState) -> WizardState:
        statuses = tuple(
            AgentCreationStatus(template_id=f"t{i}", desired_name=f"A{i}", state=s)
            for i, s in enumerate(states)
        )
        return WizardState(
            mode=M,
            current_step=StepId.BATCH_CREATION,
            multi=MultiAgentState(batch_statuses=statuses),
        )

    def test_back_stops_once_agents_exist(self) -> None:
        state = self._state(CreationState.SUCCESS, CreationState.ERROR)
        assert state.multi.batch_provisioned
        assert back(state) is state

    def test_failed_batch_can_go_back(self) -> None:
        state = self._state(CreationState.ERROR, CreationState.ERROR)
        assert not state.multi.batch_provisioned
        assert back(state).current_step == StepId.DEFINE_MULTI_NAMES


class TestApplyUpdates:
    def test_nested_merge_keeps_other_fields(self) -> None:
        state = WizardState(mode=S, single=SingleAgentState(name="Ana", is_principal=True))
        new = apply_updates(state, {"current_step": StepId.EDIT_RULES, "single": {"name": "Bia"}})
        assert new.single.name == "Bia"
        assert new.single.is_principal
        assert new.mode == S
        assert new.current_step == StepId.EDIT_RULES

    def test_input_state_untouched(self) -> None:
        state = WizardState()
        apply_updates(state, {"mode": M, "multi": {"editing_index": 3}})
        assert state.mode is None
        assert state.multi.editing_index == 0

    def test_unknown_field_raises(self) -> None:
        with pytest.raises(TypeError):
            apply_updates(WizardState(), {"single": {"nope": 1}})
