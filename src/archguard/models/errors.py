"""archguardのカスタム例外クラス。"""


class ArchGuardError(Exception):
    """archguardの基底例外クラス。"""


class ProtocolError(ArchGuardError):
    """リクエストエンベロープが不正な場合の例外（JSON不正、必須フィールド欠落）。"""

    def __init__(self, message: str, request_id: str | None = None, tool_name: str | None = None) -> None:
        super().__init__(message)
        self.request_id = request_id
        self.tool_name = tool_name


class UnknownToolError(ArchGuardError):
    """登録されていないツール名が指定された場合の例外。"""

    def __init__(self, tool_name: str) -> None:
        super().__init__(f"Unknown tool: {tool_name}")
        self.tool_name = tool_name


class ToolDisabledError(UnknownToolError):
    """無効化されたツールが呼び出された場合の例外。"""

    def __init__(self, tool_name: str) -> None:
        ArchGuardError.__init__(self, f"Tool disabled: {tool_name}")
        self.tool_name = tool_name


class DuplicateToolError(ArchGuardError):
    """同名のツールが二重登録された場合の例外。"""

    def __init__(self, tool_name: str) -> None:
        super().__init__(f"Tool already registered: {tool_name}")
        self.tool_name = tool_name


class RegistryFrozenError(ArchGuardError):
    """起動完了後のレジストリに登録しようとした場合の例外。"""

    def __init__(self, tool_name: str) -> None:
        super().__init__(f"Tool registry is frozen, cannot register: {tool_name}")
        self.tool_name = tool_name


class ValidationExecutionError(ArchGuardError):
    """バリデータの実行中に発生した例外。"""

    def __init__(self, file_path: str, validator: str, cause: BaseException) -> None:
        self.detail = f"validator '{validator}' failed: {type(cause).__name__}: {cause}"
        super().__init__(f"{file_path}: {self.detail}")
        self.file_path = file_path
        self.validator = validator
        self.cause = cause


class ConfigurationError(ArchGuardError):
    """スキャンパスなど必須入力が不足・不正な場合の例外。"""


class PolicyLoadError(ConfigurationError):
    """依存ポリシーファイルの読み込みに失敗した場合の例外。"""

    def __init__(self, policy_path: str, reason: str) -> None:
        super().__init__(f"Failed to load dependency policy {policy_path}: {reason}")
        self.policy_path = policy_path
