from unittest.mock import MagicMock

from earn.services import (
    CICOFlow,
    EarnEvents,
    LoggingAnalyticsSink,
    RecordingAnalyticsSink,
    RecordingNavigator,
    Screens,
)


def test_recording_sink_copies_properties():
    sink = RecordingAnalyticsSink()
    properties = {"gasTokenId": "arbitrum-sepolia:native"}

    sink.track(EarnEvents.EARN_DEPOSIT_ADD_GAS_PRESS, properties)
    properties["gasTokenId"] = "changed"

    assert sink.events == [(EarnEvents.EARN_DEPOSIT_ADD_GAS_PRESS, {"gasTokenId": "arbitrum-sepolia:native"})]


def test_recording_sink_accepts_event_names():
    sink = RecordingAnalyticsSink()
    sink.track("earn_enter_amount_continue_press", {})
    assert sink.events[0][0] is EarnEvents.EARN_ENTER_AMOUNT_CONTINUE_PRESS


def test_logging_sink_emits_structured_event():
    logger = MagicMock()

    LoggingAnalyticsSink(logger=logger).track(EarnEvents.EARN_DEPOSIT_ADD_GAS_PRESS, {"gasTokenId": "eth"})

    logger.info.assert_called_once_with(
        "analytics_event", analytics_event="earn_deposit_add_gas_press", gasTokenId="eth"
    )


def test_recording_navigator():
    navigator = RecordingNavigator()
    navigator.navigate(Screens.FIAT_EXCHANGE_AMOUNT, {"flow": CICOFlow.CASH_IN.value})
    assert navigator.calls == [(Screens.FIAT_EXCHANGE_AMOUNT, {"flow": "CashIn"})]
