from fuelnav.app.fsm import RLStateMachine, RLState


def test_starts_idle_and_can_start():
    fsm = RLStateMachine()
    assert fsm.is_idle()
    assert fsm.can_start()
    assert not fsm.is_active()


def test_training_blocks_second_start():
    fsm = RLStateMachine()
    assert fsm.start_training()
    assert fsm.is_active()
    assert not fsm.can_start()
    assert not fsm.start_training()


def test_full_cycle():
    fsm = RLStateMachine()
    fsm.start_training()
    assert fsm.finish()
    assert fsm.is_trained()
    assert fsm.can_start()
    assert fsm.start_training()
    assert fsm.request_stop()
    assert fsm.current_state == RLState.STOPPING
    assert fsm.is_active()
    assert fsm.reset_to_idle()


def test_error_requires_reset():
    fsm = RLStateMachine()
    fsm.start_training()
    assert fsm.fail_error()
    assert fsm.is_error()
    assert not fsm.can_start()
    assert not fsm.start_training()
    assert fsm.reset_to_idle()
    assert fsm.can_start()


def test_enter_and_exit_callbacks():
    fsm = RLStateMachine()
    events = []
    fsm.on_state_exit(RLState.IDLE, lambda ctx: events.append(("exit", ctx)))
    fsm.on_state_enter(RLState.TRAINING, lambda ctx: events.append(("enter", ctx)))
    fsm.start_training({"episodes": 5})
    assert events == [("exit", {"episodes": 5}), ("enter", {"episodes": 5})]


def test_descriptions():
    fsm = RLStateMachine()
    assert "Ready" in fsm.get_state_description()
    fsm.start_training()
    assert "Training" in fsm.get_state_description()


def test_refused_transition_leaves_history_untouched():
    fsm = RLStateMachine()
    assert not fsm.finish()
    assert not fsm.request_stop()
    fsm.start_training()
    fsm.finish()
    assert fsm.history == [RLState.IDLE, RLState.TRAINING, RLState.TRAINED]


def test_several_listeners_run_in_order():
    fsm = RLStateMachine()
    calls = []
    fsm.on_state_enter(RLState.TRAINING, lambda ctx: calls.append("first"))
    fsm.on_state_enter(RLState.TRAINING, lambda ctx: calls.append("second"))
    fsm.start_training()
    assert calls == ["first", "second"]
