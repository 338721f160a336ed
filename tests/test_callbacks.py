"""
Tests for the generic callback-chain engine in `callbacks.py`.

Key areas tested:
- **Ordering**: before callbacks in chain order, around callbacks nesting,
  after callbacks in reverse chain order.
- **Halting**: `Abort` stops the chain, `halted_callback_hook` is called,
  and `skip_after_callbacks_if_terminated` controls the after callbacks.
- **Filters and conditions**: method names, callables, scoped objects,
  `if` / `unless` conditions and `ValueCondition`.
- **Registry**: inheritance, skipping and resetting callbacks.

Run with: pytest tests/test_callbacks.py -v
"""

import pytest

from orm_lifecycle.callbacks import (
    Abort,
    CallbackKind,
    ValueCondition,
    define_callbacks,
    get_callbacks,
    reset_callbacks,
    run_callbacks,
    set_callback,
    skip_callback,
)
from orm_lifecycle.errors import CallbackNotFoundError, UndefinedCallbackError


def make_job_class(**config):
    class Job:
        def __init__(self):
            self.log = []

        def perform(self, block=None):
            return run_callbacks(self, "perform", block or (lambda: self.log.append("perform") or "performed"))

    define_callbacks(Job, "perform", **config)
    return Job


def logger_for(entry):
    return lambda job: job.log.append(entry)


class TestOrdering:
    def test_before_then_block_then_after(self):
        Job = make_job_class()
        set_callback(Job, "perform", "before", logger_for("before"))
        set_callback(Job, "perform", "after", logger_for("after"))

        job = Job()
        assert job.perform() == "performed"
        assert job.log == ["before", "perform", "after"]

    def test_before_callbacks_run_in_chain_order(self):
        Job = make_job_class()
        set_callback(Job, "perform", "before", logger_for("first"), logger_for("second"))

        job = Job()
        job.perform()
        assert job.log == ["first", "second", "perform"]

    def test_after_callbacks_run_in_reverse_chain_order(self):
        Job = make_job_class()
        set_callback(Job, "perform", "after", logger_for("first"))
        set_callback(Job, "perform", "after", logger_for("second"))

        job = Job()
        job.perform()
        assert job.log == ["perform", "second", "first"]

    def test_prepend_puts_callback_at_front(self):
        Job = make_job_class()
        set_callback(Job, "perform", "before", logger_for("appended"))
        set_callback(Job, "perform", "before", logger_for("prepended"), prepend=True)

        job = Job()
        job.perform()
        assert job.log == ["prepended", "appended", "perform"]

    def test_around_generator_wraps_block(self):
        Job = make_job_class()

        def wrap(job):
            job.log.append("around-in")
            yield
            job.log.append("around-out")

        set_callback(Job, "perform", "around", wrap)

        job = Job()
        assert job.perform() == "performed"
        assert job.log == ["around-in", "perform", "around-out"]

    def test_around_wraps_callbacks_defined_after_it(self):
        Job = make_job_class()

        def wrap(job):
            job.log.append("around-in")
            yield
            job.log.append("around-out")

        set_callback(Job, "perform", "before", logger_for("outer-before"))
        set_callback(Job, "perform", "around", wrap)
        set_callback(Job, "perform", "before", logger_for("inner-before"))
        set_callback(Job, "perform", "after", logger_for("inner-after"))

        job = Job()
        job.perform()
        assert job.log == ["outer-before", "around-in", "inner-before", "perform", "inner-after", "around-out"]

    def test_around_callable_receives_proceed(self):
        Job = make_job_class()

        def wrap(job, proceed):
            job.log.append("around-in")
            proceed()
            job.log.append("around-out")

        set_callback(Job, "perform", "around", wrap)

        job = Job()
        job.perform()
        assert job.log == ["around-in", "perform", "around-out"]

    def test_around_that_never_yields_skips_block(self):
        Job = make_job_class()

        def refuse(job):
            job.log.append("refused")
            return
            yield

        set_callback(Job, "perform", "around", refuse)

        job = Job()
        assert job.perform() is None
        assert job.log == ["refused"]

    def test_exception_in_block_reaches_around_generator(self):
        Job = make_job_class()

        def wrap(job):
            try:
                yield
            finally:
                job.log.append("cleanup")

        set_callback(Job, "perform", "around", wrap)

        def explode():
            raise RuntimeError("boom")

        job = Job()
        with pytest.raises(RuntimeError, match="boom"):
            job.perform(explode)
        assert job.log == ["cleanup"]

    def test_without_block_value_is_true(self):
        Job = make_job_class()
        assert run_callbacks(Job(), "perform") is True


class TestHalting:
    def aborting(self, job):
        job.log.append("abort")
        raise Abort

    def test_abort_stops_later_callbacks_and_block(self):
        Job = make_job_class()
        set_callback(Job, "perform", "before", self.aborting, logger_for("never"))

        job = Job()
        assert job.perform() is False
        assert job.log == ["abort"]

    def test_after_callbacks_still_run_by_default(self):
        Job = make_job_class()
        set_callback(Job, "perform", "before", self.aborting)
        set_callback(Job, "perform", "after", logger_for("after"))

        job = Job()
        job.perform()
        assert job.log == ["abort", "after"]

    def test_skip_after_callbacks_if_terminated(self):
        Job = make_job_class(skip_after_callbacks_if_terminated=True)
        set_callback(Job, "perform", "before", self.aborting)
        set_callback(Job, "perform", "after", logger_for("after"))

        job = Job()
        assert job.perform() is False
        assert job.log == ["abort"]

    def test_halted_callback_hook_receives_filter_and_name(self):
        Job = make_job_class()
        halted = []
        Job.halted_callback_hook = lambda job, filter, name: halted.append((filter, name))
        set_callback(Job, "perform", "before", self.aborting)

        Job().perform()
        assert halted == [(self.aborting, "perform")]

    def test_custom_terminator(self):
        Job = make_job_class(terminator=lambda target, result_fn: result_fn() is False)
        set_callback(Job, "perform", "before", lambda job: False)

        job = Job()
        assert job.perform() is False
        assert job.log == []


class TestFiltersAndConditions:
    def test_method_name_filter(self):
        Job = make_job_class()
        Job.prepare = lambda self: self.log.append("prepared")
        set_callback(Job, "perform", "before", "prepare")

        job = Job()
        job.perform()
        assert job.log == ["prepared", "perform"]

    def test_method_name_registered_twice_runs_once(self):
        Job = make_job_class()
        Job.prepare = lambda self: self.log.append("prepared")
        set_callback(Job, "perform", "before", "prepare")
        set_callback(Job, "perform", "before", "prepare")

        assert len(get_callbacks(Job, "perform")) == 1

    def test_scoped_object_filter(self):
        Job = make_job_class(scope=("kind", "name"))

        class Auditor:
            @staticmethod
            def before_perform(job):
                job.log.append("audited")

        set_callback(Job, "perform", "before", Auditor)

        job = Job()
        job.perform()
        assert job.log == ["audited", "perform"]

    def test_zero_argument_callable(self):
        Job = make_job_class()
        calls = []
        set_callback(Job, "perform", "before", lambda: calls.append("called"))

        Job().perform()
        assert calls == ["called"]

    def test_if_and_unless_conditions(self):
        Job = make_job_class()
        Job.enabled = True
        set_callback(Job, "perform", "before", logger_for("if"), if_=lambda job: job.enabled)
        set_callback(Job, "perform", "before", logger_for("unless"), unless=lambda job: job.enabled)

        job = Job()
        job.perform()
        assert job.log == ["if", "perform"]

    def test_method_name_condition(self):
        Job = make_job_class()
        Job.ready = lambda self: False
        set_callback(Job, "perform", "before", logger_for("ran"), if_="ready")

        job = Job()
        job.perform()
        assert job.log == ["perform"]

    def test_value_condition_sees_block_value(self):
        Job = make_job_class()
        set_callback(Job, "perform", "after", logger_for("after"), if_=ValueCondition(lambda value: value == "performed"))

        job = Job()
        job.perform()
        assert job.log == ["perform", "after"]

        job = Job()
        job.perform(lambda: "something else")
        assert job.log == []

    def test_invalid_filter_raises_type_error(self):
        Job = make_job_class()
        set_callback(Job, "perform", "before", 42)

        with pytest.raises(TypeError):
            Job().perform()

    def test_class_without_scoped_method_raises_type_error(self):
        Job = make_job_class()
        created = []

        class Helper:
            def __init__(self, *args):
                created.append(args)

        set_callback(Job, "perform", "before", Helper)

        job = Job()
        with pytest.raises(TypeError, match="before"):
            job.perform()
        assert created == []
        assert job.log == []


class TestRegistry:
    def test_undefined_chain_raises(self):
        class Plain:
            pass

        with pytest.raises(UndefinedCallbackError):
            set_callback(Plain, "perform", "before", lambda target: None)
        with pytest.raises(UndefinedCallbackError):
            run_callbacks(Plain(), "perform")

    def test_set_callback_requires_a_filter(self):
        Job = make_job_class()
        with pytest.raises(TypeError):
            set_callback(Job, "perform", "before")

    def test_subclass_inherits_parent_callbacks(self):
        Job = make_job_class()
        set_callback(Job, "perform", "before", logger_for("parent"))

        class ChildJob(Job):
            pass

        set_callback(ChildJob, "perform", "before", logger_for("child"))

        parent, child = Job(), ChildJob()
        parent.perform()
        child.perform()
        assert parent.log == ["parent", "perform"]
        assert child.log == ["parent", "child", "perform"]

    def test_parent_registration_reaches_existing_subclass(self):
        Job = make_job_class()

        class ChildJob(Job):
            pass

        set_callback(ChildJob, "perform", "before", logger_for("child"))
        set_callback(Job, "perform", "before", logger_for("parent"))

        child = ChildJob()
        child.perform()
        assert child.log == ["child", "parent", "perform"]

    def test_skip_callback(self):
        Job = make_job_class()
        noisy = logger_for("noisy")
        set_callback(Job, "perform", "before", noisy)
        skip_callback(Job, "perform", "before", noisy)

        job = Job()
        job.perform()
        assert job.log == ["perform"]

    def test_skip_missing_callback(self):
        Job = make_job_class()
        with pytest.raises(CallbackNotFoundError):
            skip_callback(Job, "perform", CallbackKind.BEFORE, "missing")
        skip_callback(Job, "perform", CallbackKind.BEFORE, "missing", raise_if_missing=False)

    def test_reset_callbacks(self):
        Job = make_job_class()
        set_callback(Job, "perform", "before", logger_for("before"))
        reset_callbacks(Job, "perform")

        assert len(get_callbacks(Job, "perform")) == 0

    def test_unknown_kind(self):
        Job = make_job_class()
        with pytest.raises(ValueError):
            set_callback(Job, "perform", "during", logger_for("x"))
