"""User-facing chat lines for the supported locales."""

from __future__ import annotations

import os

SUPPORTED_LOCALES = ("en", "ja")

_MESSAGES: dict[str, dict[str, str]] = {
    "en": {
        "thinking": "🤔 Thinking...",
        "done": "(done)",
        "reset": "💫 Conversation reset. Let's start a new conversation!",
        "stopped": "⛔ Stopped running tasks.",
        "aborted": "⛔ Task was aborted.",
        "error": "❌ An error occurred. Please try again.",
        "error_with_detail": "❌ An error occurred: {detail}",
        "queued": "📝 Added to queue (waiting: {size})",
        "exit": "👋 (exit) - Shutting down bot",
        "goodbye": "👋 Shutting down bot",
        "help_header": "Available commands:",
        "no_command": "❌ No command specified.",
        "shell_disabled": "❌ Shell commands are disabled: {command}",
        "auto_trigger": "⏰ No activity for {minutes} min. Starting next task: {task}",
        "budget_exceeded": "⏱️ Maximum execution time reached. Never Sleep mode paused.",
        "session_title": "Session Information",
        "start_time": "Start Time",
        "work_dir": "Working Directory",
        "mode": "Mode",
        "never_sleep_enabled": "Never Sleep Mode: Enabled",
        "instructions_header": "Send a message in this thread and Claude Code will respond.",
        "instructions_reset": "Reset conversation",
        "instructions_stop": "Stop running tasks",
        "instructions_exit": "Exit bot",
        "instructions_shell": "Execute shell command",
        "instructions_message": "Regular message: Ask Claude",
    },
    "ja": {
        "thinking": "🤔 考え中...",
        "done": "(done)",
        "reset": "💫 会話をリセットしました。新しい会話を始めましょう！",
        "stopped": "⛔ 実行中のタスクを停止しました。",
        "aborted": "⛔ タスクが中断されました。",
        "error": "❌ エラーが発生しました。もう一度お試しください。",
        "error_with_detail": "❌ エラーが発生しました: {detail}",
        "queued": "📝 キューに追加しました（待機中: {size}件）",
        "exit": "👋 (exit) - ボットを終了します",
        "goodbye": "👋 ボットを終了します",
        "help_header": "利用可能なコマンド:",
        "no_command": "❌ コマンドが指定されていません。",
        "shell_disabled": "❌ シェルコマンドは無効です: {command}",
        "auto_trigger": "⏰ {minutes}分間操作がありません。次のタスクを開始します: {task}",
        "budget_exceeded": "⏱️ 最大実行時間に達しました。Never Sleep モードを停止します。",
        "session_title": "セッション情報",
        "start_time": "開始時刻",
        "work_dir": "作業ディレクトリ",
        "mode": "モード",
        "never_sleep_enabled": "Never Sleep モード: 有効",
        "instructions_header": "このスレッドでメッセージを送信すると、Claude Code が応答します。",
        "instructions_reset": "会話をリセット",
        "instructions_stop": "実行中のタスクを中断",
        "instructions_exit": "ボットを終了",
        "instructions_shell": "シェルコマンドを実行",
        "instructions_message": "通常のメッセージ: Claude に問い合わせ",
    },
}


def detect_locale() -> str:
    """Pick ``ja`` when LANG/LANGUAGE says so, else ``en``."""
    lang = os.environ.get("LANG") or os.environ.get("LANGUAGE") or ""
    return "ja" if lang.startswith("ja") else "en"


class Messages:
    """Lookup table for one locale, falling back to English."""

    def __init__(self, locale: str | None = None):
        locale = locale or detect_locale()
        self.locale = locale if locale in _MESSAGES else "en"

    def get(self, key: str, **kwargs) -> str:
        template = _MESSAGES[self.locale].get(key) or _MESSAGES["en"].get(key) or key
        return template.format(**kwargs) if kwargs else template

    def error(self, detail: str | None = None) -> str:
        if detail:
            return self.get("error_with_detail", detail=detail)
        return self.get("error")

    def session_info(
        self,
        start_time: str,
        work_dir: str,
        debug: bool = False,
        never_sleep: bool = False,
        session_id: str | None = None,
    ) -> str:
        lines = [
            f"## {self.get('session_title')}",
            "",
            f"**{self.get('start_time')}**: {start_time}",
            f"**{self.get('work_dir')}**: `{work_dir}`",
            f"**{self.get('mode')}**: {'Debug' if debug else 'Production'}",
        ]
        if session_id:
            lines.append(f"**Session**: `{session_id}`")
        if never_sleep:
            lines.append(f"**{self.get('never_sleep_enabled')}**")
        lines += [
            "",
            "---",
            "",
            self.get("instructions_header"),
            f"- `!reset` or `!clear`: {self.get('instructions_reset')}",
            f"- `!stop`: {self.get('instructions_stop')}",
            f"- `!exit`: {self.get('instructions_exit')}",
            f"- `!<command>`: {self.get('instructions_shell')}",
            f"- {self.get('instructions_message')}",
        ]
        return "\n".join(lines)
