"""NavigationController tests — routing precedence, history, loops, submission.

Most tests walk the ``kitchen-quote`` form from forms/:

    idx  id                kind             routing
    0    step-style        image_selection  modern → step-layout, rustic → (dangling),
                                            default → order 2
    1    step-finish       image_selection  no logic; gloss has legacy jump_to_step: 4
    2    step-layout       multiple_choice  sequential
    3    step-dimensions   dimensions (3d)  sequential
    4    step-frames       frames_plan      sequential
    5    step-more-rooms   loop_section     add_another → step-dimensions (max 2)
    6    step-notes        text_input       sequential
    7    step-contact      contact_fields   last step → submit
"""

import logging

import pytest

from formflow.graph import StepGraph
from formflow.interfaces import SubmissionHandler, TransitionListener
from formflow.models.answer import Answer
from formflow.models.logic import (
    LogicAction,
    LogicRule,
    OptionCondition,
    StepLogic,
)
from formflow.models.session import NavigationPhase, NavigationState
from formflow.models.step import (
    ImageSelectionStep,
    LoopSectionStep,
    Option,
    TextInputStep,
)
from formflow.navigator import NavigationController


# =====================================================================
# Recording collaborators
# =====================================================================


class RecordingListener(TransitionListener):
    def __init__(self):
        self.events = []

    def on_transition(self, event):
        self.events.append(event)


class RecordingSubmission(SubmissionHandler):
    def __init__(self):
        self.calls = []

    def submit(self, submission):
        self.calls.append(submission)


class FailingSubmission(SubmissionHandler):
    def submit(self, submission):
        raise RuntimeError("webhook down")


class FailingListener(TransitionListener):
    def on_transition(self, event):
        raise RuntimeError("renderer crashed")


def _pick(option_id):
    return Answer(selected_option_id=option_id)


FULL_DIMENSIONS = Answer(width=300, height=240, depth=60)


@pytest.fixture
def listener():
    return RecordingListener()


@pytest.fixture
def handler():
    return RecordingSubmission()


@pytest.fixture
def nav(kitchen, listener, handler):
    return NavigationController(kitchen, listener=listener, submission=handler)


# =====================================================================
# Initial state
# =====================================================================


class TestInitialState:

    def test_starts_active_at_zero(self, nav):
        assert nav.current_index == 0
        assert nav.state.history == [0]
        assert nav.phase == NavigationPhase.ACTIVE
        assert nav.current_step.id == "step-style"
        assert nav.can_go_back is False

    def test_state_is_a_copy(self, nav):
        """Mutating the returned state does not leak into the controller."""
        state = nav.state
        state.history.append(99)
        state.current_index = 5
        assert nav.state.history == [0]
        assert nav.current_index == 0

    def test_empty_history_reseeded(self, kitchen):
        nav = NavigationController(kitchen, state=NavigationState(history=[]))
        assert nav.state.history == [0]

    def test_resume_from_persisted_state(self, kitchen):
        state = NavigationState(current_index=3, history=[0, 0, 2])
        nav = NavigationController(kitchen, state=state)
        assert nav.current_step.id == "step-dimensions"
        assert nav.can_go_back is True


# =====================================================================
# Validation gate
# =====================================================================


class TestValidationGate:
    """Rejected answers never move the session."""

    def test_rejected_answer_leaves_state_untouched(self, nav):
        result = nav.advance(Answer())
        assert result.accepted is False
        assert result.reasons == ["This field is required"]
        assert result.from_index == result.to_index == 0
        assert nav.current_index == 0
        assert nav.state.history == [0]
        assert nav.answers == {}, "Rejected answers must not be recorded"

    def test_none_answer_treated_as_empty(self, nav):
        assert nav.advance(None).accepted is False

    def test_can_advance_does_not_mutate(self, nav, kitchen):
        result = nav.can_advance(kitchen.get_step("step-style"), _pick("opt-modern"))
        assert result.ok
        assert nav.current_index == 0
        assert nav.answers == {}

    def test_frames_batch_rejected(self, kitchen):
        """Two incomplete frames produce one reason each."""
        nav = NavigationController(kitchen, state=NavigationState(current_index=4, history=[0, 0, 2, 3]))
        result = nav.advance(Answer(frames=[{"location": "North wall"}, {"image_url": "/f2.jpg"}]))
        assert result.accepted is False
        assert result.reasons == [
            "Frame 1: image is required",
            "Frame 2: location is required",
        ]
        assert nav.current_index == 4


# =====================================================================
# Routing precedence
# =====================================================================


class TestRouting:
    """Rule → default → legacy jump → sequential."""

    def test_rule_match(self, nav):
        """Option A (modern) routes to step-layout by rule."""
        result = nav.advance(_pick("opt-modern"))
        assert result.accepted is True
        assert nav.current_step.id == "step-layout"
        assert result.to_index == 2

    def test_default_action(self, nav):
        """Option B (classic) matches no rule and takes the default (order 2)."""
        nav.advance(_pick("opt-classic"))
        assert nav.current_step.id == "step-finish"

    def test_dangling_rule_target_falls_to_default(self, nav):
        """rustic's rule points at a deleted step; the default still applies."""
        nav.advance(_pick("opt-rustic"))
        assert nav.current_step.id == "step-finish"

    def test_legacy_jump_without_step_logic(self, nav):
        """step-finish has no StepLogic, so gloss's jump_to_step: 4 applies."""
        nav.advance(_pick("opt-classic"))
        nav.advance(_pick("opt-gloss"))
        assert nav.current_step.step_order == 4
        assert nav.current_step.id == "step-dimensions"

    def test_sequential_without_jump(self, nav):
        nav.advance(_pick("opt-classic"))
        nav.advance(_pick("opt-matte"))
        assert nav.current_step.id == "step-layout"

    def test_step_logic_presence_blocks_legacy_jump(self):
        """Any StepLogic on the step disables per-option jumps, even with no match."""
        graph = StepGraph(
            "f",
            [
                ImageSelectionStep(id="s1", title="Pick", step_order=1),
                TextInputStep(id="s2", title="Two", step_order=2),
                TextInputStep(id="s3", title="Three", step_order=3),
            ],
            options=[
                Option(id="opt-a", step_id="s1", label="A", jump_to_step=3),
                Option(id="opt-b", step_id="s1", label="B"),
            ],
            step_logic=[StepLogic(
                step_id="s1",
                rules=[LogicRule(
                    step_id="s1",
                    conditions=[OptionCondition(option_id="opt-b")],
                    action=LogicAction(target_step_id="s3"),
                )],
            )],
        )
        nav = NavigationController(graph)
        nav.advance(_pick("opt-a"))
        assert nav.current_step.id == "s2", "Legacy jump must be ignored when StepLogic exists"

    def test_legacy_jump_to_unknown_order_is_sequential(self, caplog):
        graph = StepGraph(
            "f",
            [
                ImageSelectionStep(id="s1", title="Pick", step_order=1),
                TextInputStep(id="s2", title="Two", step_order=2),
            ],
            options=[Option(id="opt-a", step_id="s1", label="A", jump_to_step=9)],
        )
        nav = NavigationController(graph)
        with caplog.at_level(logging.WARNING, logger="formflow.navigator"):
            nav.advance(_pick("opt-a"))
        assert nav.current_step.id == "s2"
        assert "unknown step_order" in caplog.text

    def test_option_of_another_step_is_not_a_jump(self):
        """Only options owned by the current step trigger a legacy jump."""
        graph = StepGraph(
            "f",
            [
                TextInputStep(id="s1", title="One", step_order=1),
                TextInputStep(id="s2", title="Two", step_order=2),
                ImageSelectionStep(id="s3", title="Pick", step_order=3),
            ],
            options=[Option(id="opt-x", step_id="s3", label="X", jump_to_step=3)],
        )
        nav = NavigationController(graph)
        nav.advance(Answer(selected_option_id="opt-x"))
        assert nav.current_step.id == "s2"

    def test_self_loop_is_honoured(self):
        """A rule targeting its own step re-presents that step."""
        graph = StepGraph(
            "f",
            [
                ImageSelectionStep(id="s1", title="Pick", step_order=1),
                TextInputStep(id="s2", title="Two", step_order=2),
            ],
            options=[Option(id="again", step_id="s1", label="Again")],
            step_logic=[StepLogic(
                step_id="s1",
                rules=[LogicRule(
                    step_id="s1",
                    conditions=[OptionCondition(option_id="again")],
                    action=LogicAction(target_step_id="s1"),
                )],
            )],
        )
        nav = NavigationController(graph)
        nav.advance(_pick("again"))
        nav.advance(_pick("again"))
        assert nav.current_index == 0
        assert nav.state.history == [0, 0, 0]

    def test_go_to_end_submits(self, feedback, handler):
        """A go_to_end rule submits straight from the first step."""
        nav = NavigationController(feedback, submission=handler)
        result = nav.advance(_pick("opt-no"))
        assert result.accepted is True
        assert nav.phase == NavigationPhase.COMPLETE
        assert len(handler.calls) == 1
        assert handler.calls[0].path == ["q-recommend"]

    def test_no_match_no_default_is_sequential(self, feedback):
        nav = NavigationController(feedback)
        nav.advance(_pick("opt-yes"))
        assert nav.current_step.id == "q-rating"


# =====================================================================
# Back-navigation history
# =====================================================================


class TestHistory:

    def test_advance_then_retreat_is_symmetric(self, nav):
        nav.advance(_pick("opt-modern"))
        result = nav.retreat()
        assert result.to_index == 0
        assert nav.current_index == 0
        assert nav.state.history == [0]

    def test_retreat_follows_visited_path_not_order(self, nav):
        """Back from a jumped-to step returns to where the respondent came from."""
        nav.advance(_pick("opt-classic"))   # 0 -> 1
        nav.advance(_pick("opt-gloss"))     # 1 -> 3 (legacy jump)
        nav.retreat()
        assert nav.current_step.id == "step-finish"
        nav.retreat()
        assert nav.current_step.id == "step-style"

    def test_retreat_at_start_is_clamped(self, nav):
        result = nav.retreat()
        assert result.to_index == 0
        assert nav.current_index == 0
        assert nav.state.history == [0]

    def test_retreat_with_single_entry_steps_back_one(self, kitchen):
        """The clamp safeguard steps back by one index when history is exhausted."""
        nav = NavigationController(kitchen, state=NavigationState(current_index=3, history=[0]))
        nav.retreat()
        assert nav.current_index == 2
        assert nav.state.history == [0]

    def test_previous_answer_kept_after_retreat(self, nav):
        nav.advance(_pick("opt-classic"))
        nav.retreat()
        assert nav.answers["step-style"].selected_option_id == "opt-classic"


# =====================================================================
# Loop sections
# =====================================================================


class TestLoopSection:
    """add_another jumps back to the loop start until the cap is reached."""

    @pytest.fixture
    def at_loop(self, kitchen):
        state = NavigationState(current_index=5, history=[0, 0, 2, 3, 4])
        return NavigationController(kitchen, state=state)

    def test_add_another_jumps_to_start(self, at_loop):
        at_loop.advance(Answer(loop_choice="add_another"))
        assert at_loop.current_step.id == "step-dimensions"
        assert at_loop.state.loop_iterations == {"step-more-rooms": 1}

    def test_continue_moves_on(self, at_loop):
        at_loop.advance(Answer(loop_choice="continue"))
        assert at_loop.current_step.id == "step-notes"
        assert at_loop.state.loop_iterations == {}

    def test_cap_reached_moves_on(self, at_loop):
        """After loop_max_iterations rounds, add_another routes normally."""
        for _ in range(2):
            at_loop.advance(Answer(loop_choice="add_another"))
            at_loop.advance(FULL_DIMENSIONS)
            at_loop.advance(Answer())
            assert at_loop.current_step.id == "step-more-rooms"

        at_loop.advance(Answer(loop_choice="add_another"))
        assert at_loop.current_step.id == "step-notes"
        assert at_loop.state.loop_iterations == {"step-more-rooms": 2}

    def test_unresolvable_start_is_sequential(self):
        graph = StepGraph(
            "f",
            [
                TextInputStep(id="s1", title="One", step_order=1),
                LoopSectionStep(id="loop", title="More?", step_order=2, loop_start_step_id="ghost"),
                TextInputStep(id="s3", title="Three", step_order=3),
            ],
        )
        nav = NavigationController(graph, state=NavigationState(current_index=1, history=[0, 0]))
        nav.advance(Answer(loop_choice="add_another"))
        assert nav.current_step.id == "s3"

    def test_unbounded_loop(self):
        graph = StepGraph(
            "f",
            [
                TextInputStep(id="s1", title="One", step_order=1),
                LoopSectionStep(id="loop", title="More?", step_order=2, loop_start_step_id="s1"),
            ],
        )
        nav = NavigationController(graph)
        for _ in range(5):
            nav.advance(Answer())
            nav.advance(Answer(loop_choice="add_another"))
        assert nav.current_step.id == "s1"
        assert nav.state.loop_iterations == {"loop": 5}


# =====================================================================
# Transition presentation hook
# =====================================================================


class TestTransitions:
    """Card-to-card moves are announced; anything else is silent."""

    def test_forward_between_cards(self, nav, listener):
        result = nav.advance(_pick("opt-classic"))
        assert result.transition is not None
        assert result.transition.direction == "forward"
        assert listener.events == [result.transition]
        assert listener.events[0].from_kind == "image_selection"
        assert listener.events[0].to_kind == "image_selection"

    def test_backward_between_cards(self, nav, listener):
        nav.advance(_pick("opt-classic"))
        nav.retreat()
        assert [e.direction for e in listener.events] == ["forward", "backward"]

    def test_card_to_other_kind_is_silent(self, nav, listener):
        result = nav.advance(_pick("opt-modern"))
        assert result.transition is None
        assert listener.events == []

    def test_listener_failure_does_not_block(self, kitchen, caplog):
        nav = NavigationController(kitchen, listener=FailingListener())
        with caplog.at_level(logging.ERROR, logger="formflow.navigator"):
            result = nav.advance(_pick("opt-classic"))
        assert result.accepted is True
        assert nav.current_step.id == "step-finish"
        assert "Transition listener failed" in caplog.text


# =====================================================================
# Submission
# =====================================================================


def _walk_to_contact(nav):
    """Modern path through the kitchen form up to the last step."""
    nav.advance(_pick("opt-modern"))
    nav.advance(_pick("opt-galley"))
    nav.advance(FULL_DIMENSIONS)
    nav.advance(Answer(frames=[{"image_url": "/f1.jpg", "location": "North wall"}]))
    nav.advance(Answer(loop_choice="continue"))
    nav.advance(Answer(answer_text="Induction hob"))
    assert nav.current_step.id == "step-contact"


class TestSubmission:

    def test_completes_after_last_step(self, nav, handler):
        _walk_to_contact(nav)
        history_before = nav.state.history
        result = nav.advance(Answer(contact_name="Ada", contact_email="ada@example.com"))
        assert result.accepted is True
        assert result.phase == NavigationPhase.COMPLETE
        assert nav.phase == NavigationPhase.COMPLETE
        assert nav.state.history == history_before, "Completion must not push history"
        assert len(handler.calls) == 1

    def test_submission_contents(self, nav, handler):
        _walk_to_contact(nav)
        nav.advance(Answer(contact_name="Ada"))
        submission = handler.calls[0]
        assert submission.form_id == "kitchen-quote"
        assert submission.path == [
            "step-style", "step-layout", "step-dimensions", "step-frames",
            "step-more-rooms", "step-notes", "step-contact",
        ]
        assert submission.answers["step-contact"].contact_name == "Ada"
        assert submission.answers["step-dimensions"].depth == 60

    def test_abandoned_branch_answers_dropped(self, nav, handler):
        """Answers given on a branch the respondent backed out of are not submitted."""
        nav.advance(_pick("opt-classic"))
        nav.advance(_pick("opt-matte"))
        nav.retreat()
        nav.retreat()
        assert "step-finish" in nav.answers
        # Fresh path via modern skips step-finish
        _walk_to_contact(nav)
        nav.advance(Answer(contact_name="Ada"))
        assert "step-finish" not in handler.calls[0].answers
        assert "step-finish" not in handler.calls[0].path

    def test_operations_after_complete_raise(self, nav):
        _walk_to_contact(nav)
        nav.advance(Answer(contact_name="Ada"))
        with pytest.raises(ValueError, match="expected 'active'"):
            nav.advance(Answer(contact_name="Ada"))
        with pytest.raises(ValueError, match="Cannot retreat"):
            nav.retreat()
        assert nav.can_go_back is False

    def test_handler_failure_still_completes(self, kitchen, caplog):
        nav = NavigationController(kitchen, submission=FailingSubmission())
        _walk_to_contact(nav)
        with caplog.at_level(logging.ERROR, logger="formflow.navigator"):
            nav.advance(Answer(contact_name="Ada"))
        assert nav.phase == NavigationPhase.COMPLETE
        assert "Submission handler failed" in caplog.text

    def test_no_handler_is_fine(self, kitchen):
        nav = NavigationController(kitchen)
        _walk_to_contact(nav)
        nav.advance(Answer(contact_name="Ada"))
        assert nav.phase == NavigationPhase.COMPLETE
