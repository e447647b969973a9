"""Abstract interfaces for the collaborators around the navigation engine.

These ABCs define the contract external implementations must fulfil.  The
SDK ships no rendering, webhook or email code; those live with the host
application.

Typical integration flow::

    controller = NavigationController(
        graph,
        listener=MyRenderer(),          # TransitionListener
        submission=MySubmission(),      # SubmissionHandler
    )
    result = controller.advance(answer)
    if not result.accepted:
        show(result.reasons)

With the DB-backed engine, completed submissions are additionally handed to
an async ``ResponseSink`` (persist elsewhere, fire webhook, send email)::

    engine = FormEngine(store, sink=MyWebhookSink(...))
"""

from abc import ABC, abstractmethod

from formflow.models.session import FormSubmission, TransitionEvent


class TransitionListener(ABC):
    """Presentation hook notified when a visual card transition happens.

    The controller calls :meth:`on_transition` before swapping the current
    step.  Nothing the listener does flows back into navigation; exceptions
    it raises are logged and ignored.
    """

    @abstractmethod
    def on_transition(self, event: TransitionEvent) -> None:
        """Start a forward/backward animation between two card steps."""
        ...


class SubmissionHandler(ABC):
    """Receives the accumulated answers when the session reaches submission.

    Called exactly once per session, synchronously, while the controller is
    in the ``submitting`` phase.  Success or failure does not change the
    outcome: the session always moves on to ``complete``.
    """

    @abstractmethod
    def submit(self, submission: FormSubmission) -> None:
        """Handle a finished form."""
        ...


class ResponseSink(ABC):
    """Async delivery of completed submissions (webhooks, email, exports).

    The engine awaits :meth:`deliver` after the submission has been
    persisted.  Failures are logged and never reopen the session.
    """

    @abstractmethod
    async def deliver(self, submission: FormSubmission) -> None:
        """Deliver one completed submission."""
        ...
