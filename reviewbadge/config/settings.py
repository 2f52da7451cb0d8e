"""
設定ファイルの読み込みと管理を行うモジュール
"""
import os
from pathlib import Path
from dotenv import load_dotenv
import yaml
import logging
from typing import Dict, List, Any, Optional
from dataclasses import dataclass, field

# ロギングの設定
logger = logging.getLogger(__name__)

# 環境変数の読み込み
load_dotenv()

# プロジェクトのルートディレクトリを取得
ROOT_DIR = Path(__file__).resolve().parent.parent.parent

# 設定ファイルのパス
CONFIG_FILE = ROOT_DIR / "config.yaml"

DEFAULT_SCOPE = "Canva/canva"
DEFAULT_TOKEN_FILE = "~/.pr-train"

class ConfigError(Exception):
    """設定エラーの基底例外クラス"""
    pass

class ValidationError(ConfigError):
    """設定検証エラー"""
    pass

class MissingConfigError(ConfigError):
    """設定不足エラー"""
    pass

@dataclass
class PollSettings:
    """ポーリング設定"""
    interval: float = 30.0
    max_workers: int = 8
    per_page: int = 100
    max_retries: int = 3
    timeout: int = 30

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PollSettings':
        """辞書からポーリング設定を作成"""
        return cls(
            interval=data.get('interval', 30.0),
            max_workers=data.get('max_workers', 8),
            per_page=data.get('per_page', 100),
            max_retries=data.get('max_retries', 3),
            timeout=data.get('timeout', 30)
        )

@dataclass
class WorkCalendarSettings:
    """稼働時間カレンダー設定"""
    start_hour: int = 9
    end_hour: int = 17
    working_days: List[int] = field(default_factory=lambda: [0, 1, 2, 3, 4])

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'WorkCalendarSettings':
        """辞書からカレンダー設定を作成"""
        return cls(
            start_hour=data.get('start_hour', 9),
            end_hour=data.get('end_hour', 17),
            working_days=list(data.get('working_days', [0, 1, 2, 3, 4]))
        )

class Settings:
    def __init__(self, config_file: Optional[Path] = None):
        """設定の初期化"""
        self.config_file = config_file or CONFIG_FILE
        self.config = self._load_config()
        self._validate_config(self.config)

        # 設定オブジェクトの初期化
        self.poll_settings = PollSettings.from_dict(self.config.get('poll_settings', {}))
        self.work_calendar = WorkCalendarSettings.from_dict(self.config.get('work_calendar', {}))

    def _load_config(self) -> Dict[str, Any]:
        """設定ファイルを読み込む"""
        try:
            if not self.config_file.exists():
                logger.warning(f"設定ファイルが見つかりません: {self.config_file}")
                logger.info("デフォルト設定を使用します")
                return self._get_default_config()

            with open(self.config_file, 'r', encoding='utf-8') as f:
                config = yaml.safe_load(f)
                if config is None:
                    logger.warning("設定ファイルが空です。デフォルト設定を使用します")
                    return self._get_default_config()
                return config
        except yaml.YAMLError as e:
            logger.error(f"YAML設定ファイルの解析に失敗しました: {e}")
            raise ValidationError(f"設定ファイルの解析に失敗: {e}")
        except OSError as e:
            logger.error(f"設定ファイルの読み込みに失敗しました: {e}")
            raise ConfigError(f"設定ファイルの読み込みに失敗: {e}")

    def _get_default_config(self) -> Dict[str, Any]:
        """デフォルト設定を取得"""
        return {
            'scope': DEFAULT_SCOPE,
            'github_host': 'github.com',
            'poll_settings': {
                'interval': 30.0,
                'max_workers': 8,
                'per_page': 100,
                'max_retries': 3,
                'timeout': 30
            },
            'work_calendar': {
                'start_hour': 9,
                'end_hour': 17,
                'working_days': [0, 1, 2, 3, 4]
            }
        }

    def _validate_config(self, config: Dict[str, Any]) -> None:
        """設定の検証"""
        if not isinstance(config, dict):
            raise ValidationError("設定は辞書形式である必要があります")

        # スコープ設定の検証 (org または owner/repo)
        scope = config.get('scope', DEFAULT_SCOPE)
        if not isinstance(scope, str) or not scope.strip():
            raise ValidationError("scopeは空でない文字列である必要があります")
        if scope.count('/') > 1:
            raise ValidationError(f"scopeは 'org' または 'owner/repo' 形式である必要があります: {scope}")

        # ログイン名は任意 (未設定ならAPIから取得)
        github_login = config.get('github_login')
        if github_login is not None and (not isinstance(github_login, str) or not github_login.strip()):
            raise ValidationError("github_loginは空でない文字列である必要があります")

        # ポーリング設定の検証
        poll_settings = config.get('poll_settings', {})
        if not isinstance(poll_settings, dict):
            raise ValidationError("poll_settingsは辞書形式である必要があります")

        if 'interval' in poll_settings:
            interval = poll_settings['interval']
            if not isinstance(interval, (int, float)) or interval <= 0:
                raise ValidationError("intervalは0より大きい数値である必要があります")

        if 'max_workers' in poll_settings:
            max_workers = poll_settings['max_workers']
            if not isinstance(max_workers, int) or max_workers <= 0 or max_workers > 64:
                raise ValidationError("max_workersは1-64の整数である必要があります")

        if 'per_page' in poll_settings:
            per_page = poll_settings['per_page']
            if not isinstance(per_page, int) or per_page <= 0 or per_page > 100:
                raise ValidationError("per_pageは1-100の整数である必要があります")

        # カレンダー設定の検証
        work_calendar = config.get('work_calendar', {})
        if not isinstance(work_calendar, dict):
            raise ValidationError("work_calendarは辞書形式である必要があります")

        start_hour = work_calendar.get('start_hour', 9)
        end_hour = work_calendar.get('end_hour', 17)
        if not (isinstance(start_hour, int) and isinstance(end_hour, int) and 0 <= start_hour < end_hour <= 24):
            raise ValidationError("start_hour/end_hourは 0 <= start_hour < end_hour <= 24 である必要があります")

        working_days = work_calendar.get('working_days', [0, 1, 2, 3, 4])
        if not isinstance(working_days, list) or any(not isinstance(d, int) or not 0 <= d <= 6 for d in working_days):
            raise ValidationError("working_daysは0(月)-6(日)の整数リストである必要があります")

    @property
    def scope(self) -> str:
        """検索対象のorganizationまたはowner/repoを取得"""
        return self.config.get('scope', DEFAULT_SCOPE).strip()

    @property
    def github_host(self) -> str:
        """Webリンク用のGitHubホスト名を取得"""
        return self.config.get('github_host', 'github.com')

    @property
    def api_url(self) -> str:
        """GitHub REST APIのベースURLを取得"""
        api_url = self.config.get('api_url')
        if api_url:
            return api_url.rstrip('/')
        if self.github_host == 'github.com':
            return "https://api.github.com"
        # GitHub Enterprise Server
        return f"https://{self.github_host}/api/v3"

    @property
    def github_login(self) -> Optional[str]:
        """設定済みのGitHubログイン名（未設定ならNone）"""
        github_login = self.config.get('github_login')
        return github_login.strip() if github_login else None

    @property
    def images_dir(self) -> Path:
        """アイコン画像ディレクトリを取得"""
        images_dir = Path(self.config.get('images_dir', 'images'))
        if not images_dir.is_absolute():
            images_dir = ROOT_DIR / images_dir
        return images_dir

    @property
    def logging(self) -> Dict[str, Any]:
        """ロギング設定を取得"""
        defaults = {
            'level': os.getenv('LOG_LEVEL', 'INFO'),
            'format': "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            'file': None
        }
        defaults.update(self.config.get('logging') or {})
        return defaults

    @property
    def token_file(self) -> Path:
        """トークンファイルのパスを取得"""
        return Path(self.config.get('token_file', DEFAULT_TOKEN_FILE)).expanduser()

    @property
    def github_pat(self) -> str:
        """GitHub Personal Access Tokenを取得"""
        token = os.getenv('GITHUB_PAT')
        if not token:
            try:
                token = self.token_file.read_text(encoding='utf-8').strip()
            except OSError:
                token = None
        if not token:
            raise MissingConfigError(
                "GitHub Personal Access Tokenが設定されていません。"
                f"GITHUB_PAT環境変数を設定するか {self.token_file} にトークンを保存してください"
            )

        if len(token) < 10:
            raise ValidationError("GitHub Personal Access Tokenが短すぎます")

        return token
