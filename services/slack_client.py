import sys

from services.logger import get_logger

logger = get_logger("Notifier")


class ConsoleNotifier:
    """コンソール出力による通知（フォールバック用）"""

    def send(self, message: str) -> bool:
        print(f"[勤怠通知] {message}", file=sys.stdout)
        return True

    def send_warning(self, message: str) -> bool:
        print(f"[勤怠警告] {message}", file=sys.stdout)
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
            try:
                from slack_sdk import WebClient
                self._client = WebClient(token=token)
            except ImportError:
                logger.warning("slack_sdk が見つからないためコンソール通知に切り替えます")

    def _post(self, text: str) -> bool:
        """メッセージ送信（クライアント未初期化時はフォールバック）"""
        if self._client is None:
            return self._fallback.send(text)

        try:
            self._client.chat_postMessage(channel=self._channel, text=text)
            return True
        except Exception as e:
            logger.error("Slack送信に失敗しました: %s", e)
            return False

    def send(self, message: str) -> bool:
        return self._post(f"✅ {message}")

    def send_warning(self, message: str) -> bool:
        return self._post(f"⚠️ {message}")

    def send_error(self, error: str) -> bool:
        return self._post(f"❌ {error}")


def create_notifier(config: dict, token: str = ""):
    """設定に基づいて通知先を選ぶ"""
    slack_config = config["slack"]
    if slack_config["enabled"] and token:
        return SlackNotifier(token=token, channel=slack_config.get("notify_channel", ""))
    return ConsoleNotifier()
