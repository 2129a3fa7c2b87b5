from typing import Optional
import sys


class ConsoleNotifier:
    """コンソール出力による通知（フォールバック用）"""

    def notify(self, title: str, body: str) -> bool:
        print(f"[勤怠通知] {title}: {body}", file=sys.stdout)
        return True

    def send_error(self, error: str) -> bool:
        print(f"[勤怠エラー] {error}", file=sys.stderr)
        return True


class SlackNotifier:
    """Slack APIによる通知サービス"""

    def __init__(self, token: str, channel: str):
        self._channel = channel
        self._client = None
        self._fallback = ConsoleNotifier()

        if token:
            from slack_sdk import WebClient
            self._client = WebClient(token=token)

    def _post(self, text: str) -> bool:
        try:
            self._client.chat_postMessage(channel=self._channel, text=text)
            return True
        except Exception as e:
            print(f"[勤怠通知] Slack送信に失敗しました: {e}", file=sys.stderr)
            return False

    def notify(self, title: str, body: str) -> bool:
        """通知送信（クライアント未設定時はコンソールへ）"""
        if self._client is None:
            return self._fallback.notify(title, body)
        return self._post(f"*{title}*\n{body}")

    def send_error(self, error: str) -> bool:
        if self._client is None:
            return self._fallback.send_error(error)
        return self._post(f"❌ Work tracker error: {error}")


def create_notifier(token: Optional[str], channel: str, enabled: bool = True):
    """Slackが有効でトークンがあればSlack、なければコンソール"""
    if enabled and token:
        return SlackNotifier(token=token, channel=channel)
    return ConsoleNotifier()
