"""
reviewbadgeのエントリーポイント
設定を読み込み、一定間隔でレビュー待ちPRをポーリングします。
"""
import logging
import sys
import time
from pathlib import Path
from typing import Optional

import click

from reviewbadge.analysis.badness_scorer import BadnessScorer
from reviewbadge.analysis.working_hours import WorkCalendar
from reviewbadge.config.settings import ConfigError, MissingConfigError, Settings
from reviewbadge.github_api.client import GitHubAPIClient
from reviewbadge.github_api.fetcher import ReviewFetcher
from reviewbadge.github_api.identity import UserIdentity
from reviewbadge.gui.review_monitor import MonitorState, ReviewMonitor

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    """ロギングの設定"""
    log_settings = settings.logging
    handlers = [logging.StreamHandler()]
    if log_settings.get('file'):
        log_file = Path(log_settings['file'])
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=str(log_settings.get('level', 'INFO')).upper(),
        format=log_settings['format'],
        handlers=handlers
    )


def build_monitor(settings: Settings) -> ReviewMonitor:
    """設定からReviewMonitorを組み立てる"""
    client = GitHubAPIClient(settings)
    if settings.github_login:
        identity = UserIdentity.preset(settings.github_login)
    else:
        identity = UserIdentity(client)

    fetcher = ReviewFetcher(
        client,
        identity,
        scope=settings.scope,
        max_workers=settings.poll_settings.max_workers
    )
    scorer = BadnessScorer(WorkCalendar.from_settings(settings))
    return ReviewMonitor(fetcher, scorer, images_dir=settings.images_dir, host=settings.github_host)


def _echo_menu(entries, indent: int = 1) -> None:
    for entry in entries:
        click.echo("  " * indent + entry.label + (f"  <{entry.url}>" if entry.url else ""))
        _echo_menu(entry.submenu, indent + 1)


def report(state: Optional[MonitorState]) -> None:
    if state is None:
        return
    click.echo(f"score={state.score} reviews={state.badge_count} icon={state.icon}")
    if state.reviews_url:
        click.echo(f"reviews page: {state.reviews_url}")
    _echo_menu(state.menu)
    if state.should_bounce:
        click.echo("  (new review requested)")


@click.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Path to config.yaml.",
    envvar="REVIEWBADGE_CONFIG",
)
@click.option("--once", is_flag=True, help="Run a single poll cycle and exit.")
def main(config_path: Optional[Path], once: bool) -> None:
    """Poll GitHub for pull requests awaiting your review and score how overdue they are."""
    try:
        settings = Settings(config_path)
    except ConfigError as e:
        click.echo(f"設定の読み込みに失敗しました: {e}", err=True)
        sys.exit(1)

    configure_logging(settings)

    try:
        monitor = build_monitor(settings)
    except MissingConfigError as e:
        logger.error(f"GitHub API Keyが見つかりません: {e}")
        click.echo(f"GitHub API Keyが見つかりません: {e}", err=True)
        sys.exit(1)
    except ConfigError as e:
        logger.error(f"設定エラー: {e}")
        click.echo(f"設定エラー: {e}", err=True)
        sys.exit(1)

    interval = settings.poll_settings.interval
    logger.info(f"ポーリングを開始します (scope: {settings.scope}, 間隔: {interval}秒)")
    click.echo(f"loading... icon={monitor.current_icon}")

    report(monitor.run_cycle())
    if once:
        return

    try:
        while True:
            time.sleep(interval)
            report(monitor.run_cycle())
    except KeyboardInterrupt:
        logger.info("ポーリングを終了します")


if __name__ == "__main__":
    main()
