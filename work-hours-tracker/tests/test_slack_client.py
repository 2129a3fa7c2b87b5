from unittest.mock import MagicMock, patch
from services.slack_client import ConsoleNotifier, SlackNotifier, create_notifier


def test_console_notifier_notify():
    """ConsoleNotifierがメッセージを出力すること"""
    notifier = ConsoleNotifier()
    with patch("builtins.print") as mock_print:
        result = notifier.notify("Checkout Reminder", "Time to check out for the day!")
    assert result is True
    mock_print.assert_called_once()


def test_console_notifier_send_error():
    """ConsoleNotifierがエラーメッセージを出力すること"""
    notifier = ConsoleNotifier()
    with patch("builtins.print") as mock_print:
        result = notifier.send_error("エラー内容")
    assert result is True
    mock_print.assert_called_once()


def test_slack_notifier_notify_success():
    """SlackNotifierがメッセージ送信に成功すること"""
    mock_client = MagicMock()
    mock_client.chat_postMessage.return_value = {"ok": True}

    notifier = SlackNotifier(token="xoxb-test", channel="C12345")
    notifier._client = mock_client

    result = notifier.notify("Overtime", "You are now in overtime!")
    assert result is True
    mock_client.chat_postMessage.assert_called_once_with(
        channel="C12345", text="*Overtime*\nYou are now in overtime!"
    )


def test_slack_notifier_notify_failure():
    """Slack API失敗時にFalseを返すこと"""
    mock_client = MagicMock()
    mock_client.chat_postMessage.side_effect = Exception("API Error")

    notifier = SlackNotifier(token="xoxb-test", channel="C12345")
    notifier._client = mock_client

    with patch("builtins.print"):
        result = notifier.notify("Overtime", "You are now in overtime!")
    assert result is False


def test_slack_notifier_fallback():
    """トークンが無い場合コンソールにフォールバックすること"""
    notifier = SlackNotifier(token="", channel="")
    with patch("builtins.print") as mock_print:
        result = notifier.notify("Overtime", "フォールバックテスト")
    assert result is True
    mock_print.assert_called_once()


def test_create_notifier():
    assert isinstance(create_notifier(token="", channel="C1"), ConsoleNotifier)
    assert isinstance(create_notifier(token="xoxb-test", channel="C1", enabled=False), ConsoleNotifier)
    assert isinstance(create_notifier(token="xoxb-test", channel="C1"), SlackNotifier)
