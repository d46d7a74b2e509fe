"""
例外および警告の型定義。
"""


# @intent:responsibility トレース解析に関する致命的なエラーの基底クラス。
class TraceError(ValueError):
    pass


# @intent:responsibility 構造記述ファイルに命令メモリのリテラル初期化文が見つからないことを示します。
class InstructionMemoryNotFoundError(TraceError):
    pass


# @intent:responsibility セッション設定ファイルの内容が不正であることを示します。
class ConfigError(TraceError):
    pass


# @intent:responsibility 補助イメージ（命令メモリ、データメモリ等）が読めず、Noneで代替したことを通知します。
class AuxiliaryImageWarning(UserWarning):
    pass
