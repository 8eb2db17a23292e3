"""Localized user-facing notification texts."""

DEFAULT_LOCALE = "en"

LOCALES: dict[str, dict[str, str]] = {
    "en": {
        "import_failed": "Failed to import from file",
        "import_success": "Imported backup, reloading",
        "export_saved": "Backup saved to {path}",
        "check_success": "Sync service is reachable",
        "check_failed": "Unable to reach sync service",
        "no_account": "Sync account is not configured",
    },
    "cn": {
        "import_failed": "导入失败",
        "import_success": "导入成功，正在重新加载",
        "export_saved": "备份已保存到 {path}",
        "check_success": "同步服务可用",
        "check_failed": "无法连接同步服务",
        "no_account": "未配置同步账户",
    },
}


def get_text(key: str, lang: str = DEFAULT_LOCALE, **kwargs) -> str:
    """Look up a message, falling back to English for unknown languages or keys."""
    messages = LOCALES.get(lang, LOCALES[DEFAULT_LOCALE])
    text = messages.get(key) or LOCALES[DEFAULT_LOCALE][key]
    return text.format(**kwargs) if kwargs else text
