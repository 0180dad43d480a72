import os
import signal

import pytest

from albertcore.signalhandler import HANDLED_SIGNALS, SignalHandler


def test_default_signals_are_all_installed():
    assert signal.SIGTERM in HANDLED_SIGNALS
    assert signal.SIGINT in HANDLED_SIGNALS
    before = {sig: signal.getsignal(sig) for sig in HANDLED_SIGNALS}
    with SignalHandler(lambda s: None) as handler:
        for sig in HANDLED_SIGNALS:
            assert signal.getsignal(sig) == handler._handle
    for sig in HANDLED_SIGNALS:
        assert signal.getsignal(sig) == before[sig]


def test_signal_calls_callback_once_and_resets():
    calls = []
    before = signal.getsignal(signal.SIGHUP)
    with SignalHandler(calls.append) as handler:
        os.kill(os.getpid(), signal.SIGHUP)
        assert calls == [signal.SIGHUP]
        assert handler.received == [signal.SIGHUP]
        assert signal.getsignal(signal.SIGHUP) == signal.SIG_DFL
    assert signal.getsignal(signal.SIGHUP) == before


def test_restore_puts_back_previous_handlers():
    before = signal.getsignal(signal.SIGTERM)
    handler = SignalHandler(lambda s: None)
    handler.install()
    assert signal.getsignal(signal.SIGTERM) == handler._handle
    handler.restore()
    assert signal.getsignal(signal.SIGTERM) == before


def test_only_one_handler_at_a_time():
    with SignalHandler(lambda s: None):
        with pytest.raises(RuntimeError):
            SignalHandler(lambda s: None).install()
    second = SignalHandler(lambda s: None)
    with second:
        assert signal.getsignal(signal.SIGINT) == second._handle


def test_custom_signal_set():
    before_term = signal.getsignal(signal.SIGTERM)
    calls = []
    with SignalHandler(calls.append, signals=[signal.SIGUSR1]):
        assert signal.getsignal(signal.SIGTERM) == before_term
        os.kill(os.getpid(), signal.SIGUSR1)
    assert calls == [signal.SIGUSR1]


def test_default_callback_exits():
    with SignalHandler(signals=[signal.SIGUSR2]):
        with pytest.raises(SystemExit):
            os.kill(os.getpid(), signal.SIGUSR2)