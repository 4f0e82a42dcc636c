"""Check, mend and backup/restore workflows with rollback."""

import logging
import os
from pathlib import Path
from typing import Awaitable, Callable, Optional

from ..models.job import Operation, RecoveryJob, WorkflowResult, WorkflowStage
from ..models.templates import TemplateSet
from ..services.template_store import CommandTemplateStore, render, render_argv
from ..utils.commands import run_cmd, run_shell
from ..utils.firebird_paths import tool_name, tool_path
from ..utils.permissions import check_path_writable
from ..utils.service_control import ServiceController
from . import classifier
from .rename import rename_with_retry

logger = logging.getLogger(__name__)

StageCallback = Callable[[WorkflowStage], Awaitable[None]]

TITLES = {
    Operation.TEST: "Connection test",
    Operation.CHECK: "Check",
    Operation.MEND: "Mend",
    Operation.BACKUP_RESTORE: "Backup & restore",
}


class _WorkflowRun:
    """Mutable bookkeeping for one workflow invocation."""

    def __init__(self, job: RecoveryJob, on_stage: Optional[StageCallback]):
        self.job = job
        self.stage = WorkflowStage.IDLE
        self.stages = [WorkflowStage.IDLE]
        self.caveats: list[str] = []
        self.outputs: list[tuple[str, str]] = []
        self._on_stage = on_stage

    async def enter(self, stage: WorkflowStage) -> None:
        self.stage = stage
        self.stages.append(stage)
        logger.info(f"[{self.job.id}] {self.job.operation.value}: {stage.value}")
        if self._on_stage:
            try:
                await self._on_stage(stage)
            except Exception as e:
                logger.debug(f"Stage listener failed: {e}")

    def caveat(self, message: str) -> None:
        logger.warning(f"[{self.job.id}] {message}")
        self.caveats.append(message)

    @property
    def output(self) -> str:
        return "\n\n".join(f"[{name}]\n{text}" for name, text in self.outputs)


class RecoveryWorkflowEngine:
    def __init__(
        self,
        store: CommandTemplateStore,
        services: ServiceController,
        runner=run_cmd,
        shell_runner=run_shell,
        rename_attempts: int = 10,
        rename_delay: float = 1.0,
        tool_timeout: float = 3600.0,
        keep_history_in_temp: bool = False,
        rename=os.replace,
    ):
        self.store = store
        self.services = services
        self._run = runner
        self._run_shell = shell_runner
        self.rename_attempts = rename_attempts
        self.rename_delay = rename_delay
        self.tool_timeout = tool_timeout
        self.keep_history_in_temp = keep_history_in_temp
        self._rename_fn = rename

    async def run(
        self, job: RecoveryJob, on_stage: Optional[StageCallback] = None
    ) -> WorkflowResult:
        handlers = {
            Operation.TEST: self.test_connection,
            Operation.CHECK: self.check,
            Operation.MEND: self.mend,
            Operation.BACKUP_RESTORE: self.backup_restore,
        }
        return await handlers[job.operation](job, on_stage=on_stage)

    # -- diagnostic operations -------------------------------------------

    async def test_connection(
        self, job: RecoveryJob, on_stage: Optional[StageCallback] = None
    ) -> WorkflowResult:
        """Open the database with isql and quit right away."""
        run = _WorkflowRun(job, on_stage)
        problem = self._preconditions(job, ("isql",))
        if problem:
            return self._result(run, False, problem)

        try:
            templates = self.store.load()
            await run.enter(WorkflowStage.TEST)
            rc, out = await self._run_tool(job, "test", templates, stdin_text="quit;\n")
            run.outputs.append(("test", out or "OK"))
            failed = rc == -1 or classifier.is_failure(
                out, templates.error_heuristics, templates.success_markers
            )
        except Exception as e:
            logger.exception("Connection test crashed")
            return self._result(run, False, f"Unexpected error during test: {e}")

        if failed:
            return self._result(run, False, "Connection test reported errors")
        await run.enter(WorkflowStage.DONE)
        return self._result(run, True)

    async def check(
        self, job: RecoveryJob, on_stage: Optional[StageCallback] = None
    ) -> WorkflowResult:
        return await self._in_place(job, "check", WorkflowStage.CHECK, on_stage)

    async def mend(
        self, job: RecoveryJob, on_stage: Optional[StageCallback] = None
    ) -> WorkflowResult:
        return await self._in_place(job, "mend", WorkflowStage.MEND, on_stage)

    async def _in_place(
        self,
        job: RecoveryJob,
        key: str,
        stage: WorkflowStage,
        on_stage: Optional[StageCallback],
    ) -> WorkflowResult:
        # gfix output goes back verbatim; there is nothing on disk to undo.
        run = _WorkflowRun(job, on_stage)
        problem = self._preconditions(job, ("gfix",))
        if problem:
            return self._result(run, False, problem)

        try:
            templates = self.store.load()
            await run.enter(stage)
            rc, out = await self._run_tool(job, key, templates)
            run.outputs.append((key, out or "OK"))
        except Exception as e:
            logger.exception(f"{key} crashed")
            return self._result(run, False, f"Unexpected error during {key}: {e}")

        if rc == -1:
            return self._result(run, False, f"Could not run gfix {key}")
        await run.enter(WorkflowStage.DONE)
        return self._result(run, True)

    # -- backup/restore --------------------------------------------------

    async def backup_restore(
        self, job: RecoveryJob, on_stage: Optional[StageCallback] = None
    ) -> WorkflowResult:
        """Stop the server, rebuild the database through gbak, restart.

        Every failure after the rename puts the original file back on its
        canonical path before the service is restarted.
        """
        run = _WorkflowRun(job, on_stage)
        paths = job.paths
        problem = self._preconditions(job, ("gbak",), writable=True)
        if problem:
            return self._result(run, False, problem)

        renamed = False
        try:
            templates = self.store.load()

            await run.enter(WorkflowStage.SERVICE_STOPPING)
            await self._stop_service(run)

            await run.enter(WorkflowStage.RENAMING)
            try:
                renamed = await self._rename(job.db_path, paths.old_db)
            except OSError as e:
                return await self._abort(
                    run, f"Could not rename {job.db_path} to {paths.old_db}: {e}", renamed=False
                )
            if not renamed:
                return await self._abort(
                    run,
                    f"{job.db_path} is still in use after {self.rename_attempts} attempts",
                    renamed=False,
                )

            await run.enter(WorkflowStage.BACKUP)
            paths.temp_dir.mkdir(parents=True, exist_ok=True)
            rc, out = await self._run_tool(job, "backup", templates)
            out = self._with_log(out, paths.log_backup)
            run.outputs.append(("backup", out))
            if self._tool_failed(rc, out, templates):
                return await self._abort(run, "gbak backup reported errors", renamed=True)
            if not paths.archive.exists():
                return await self._abort(
                    run, f"gbak backup produced no archive at {paths.archive}", renamed=True
                )

            await run.enter(WorkflowStage.RESTORE)
            rc, out = await self._run_tool(job, "restore", templates)
            out = self._with_log(out, paths.log_restore)
            run.outputs.append(("restore", out))
            if self._tool_failed(rc, out, templates):
                return await self._abort(
                    run, "gbak restore reported errors", renamed=True, discard_rebuilt=True
                )
            if not paths.new_db.exists():
                return await self._abort(
                    run, f"gbak restore produced no database at {paths.new_db}", renamed=True
                )

            await run.enter(WorkflowStage.FINALIZING)
            if job.db_path.exists():
                logger.info(f"Removing placeholder at {job.db_path}")
                job.db_path.unlink()
            try:
                moved = await self._rename(paths.new_db, job.db_path)
                reason = f"{paths.new_db} is still in use after {self.rename_attempts} attempts"
            except OSError as e:
                moved = False
                reason = f"Could not move {paths.new_db} to {job.db_path}: {e}"
            if not moved:
                return await self._abort(run, reason, renamed=True, keep_rebuilt=True)
            renamed = False

            history = self._retain_history(run)

            await run.enter(WorkflowStage.SERVICE_STARTING)
            await self._start_service(run)
            await run.enter(WorkflowStage.DONE)
            return self._result(run, True, artifacts={
                "database": str(job.db_path),
                "archive": str(paths.archive),
                "log_backup": str(paths.log_backup),
                "log_restore": str(paths.log_restore),
                "history": str(history) if history else "",
            })

        except Exception as e:
            logger.exception(f"[{job.id}] backup/restore crashed during {run.stage.value}")
            return await self._abort(
                run,
                f"Unexpected error during {run.stage.value}: {e}",
                renamed=renamed,
                discard_rebuilt=run.stage == WorkflowStage.RESTORE,
                keep_rebuilt=run.stage == WorkflowStage.FINALIZING,
            )

    async def _abort(
        self,
        run: _WorkflowRun,
        reason: str,
        renamed: bool,
        discard_rebuilt: bool = False,
        keep_rebuilt: bool = False,
    ) -> WorkflowResult:
        """Undo what happened on disk, restart the service, report."""
        job, paths = run.job, run.job.paths
        failed_stage = run.stage
        logger.error(f"[{job.id}] {failed_stage.value} failed: {reason}")

        if renamed:
            try:
                restored = await self._rename(paths.old_db, job.db_path)
                if not restored:
                    run.caveat(
                        f"Original database is still at {paths.old_db}; "
                        f"it could not be moved back to {job.db_path} (in use)"
                    )
            except OSError as e:
                run.caveat(
                    f"Original database is still at {paths.old_db}; "
                    f"moving it back to {job.db_path} failed: {e}"
                )

        if paths.new_db.exists():
            if discard_rebuilt:
                try:
                    paths.new_db.unlink()
                except OSError as e:
                    run.caveat(f"Could not delete partial restore {paths.new_db}: {e}")
            elif keep_rebuilt:
                run.caveat(f"Rebuilt database left at {paths.new_db}")

        await self._start_service(run)
        await run.enter(WorkflowStage.ROLLED_BACK)
        return self._result(run, False, reason, failed_stage=failed_stage)

    def _retain_history(self, run: _WorkflowRun) -> Optional[Path]:
        paths = run.job.paths
        if not paths.old_db.exists():
            run.caveat(f"History file {paths.old_db} is missing")
            return None
        if not self.keep_history_in_temp:
            return paths.old_db
        target = paths.temp_dir / paths.old_db.name
        try:
            self._rename_fn(paths.old_db, target)
            return target
        except OSError as e:
            run.caveat(f"Could not move {paths.old_db} into {paths.temp_dir}: {e}")
            return paths.old_db

    async def _stop_service(self, run: _WorkflowRun) -> None:
        try:
            await self.services.stop_all()
        except Exception as e:
            run.caveat(f"Service stop failed: {e}")

    async def _start_service(self, run: _WorkflowRun) -> None:
        try:
            await self.services.start_all()
        except Exception as e:
            run.caveat(f"Service start failed: {e}")

    async def _rename(self, src: Path, dst: Path) -> bool:
        return await rename_with_retry(
            src, dst,
            max_attempts=self.rename_attempts,
            delay=self.rename_delay,
            rename=self._rename_fn,
        )

    # -- tools -----------------------------------------------------------

    def _preconditions(
        self, job: RecoveryJob, tools: tuple[str, ...], writable: bool = False
    ) -> Optional[str]:
        if not job.db_path.is_file():
            return f"Database file not found: {job.db_path}"
        missing = [tool_name(t) for t in tools if not tool_path(job.bin_dir, t).is_file()]
        if missing:
            return f"Missing Firebird tools in {job.bin_dir}: {', '.join(missing)}"
        if writable and not check_path_writable(str(job.db_path.parent)):
            return f"Directory is not writable: {job.db_path.parent}"
        return None

    def _context(self, job: RecoveryJob, shell: bool) -> dict[str, str]:
        def tool(name: str) -> str:
            path = str(tool_path(job.bin_dir, name))
            return f'"{path}"' if shell else path

        paths = job.paths
        return {
            "ISQL": tool("isql"),
            "GFIX": tool("gfix"),
            "GBAK": tool("gbak"),
            "USER": job.user,
            "PASS": job.password,
            "DB_PATH": str(job.db_path),
            "OLD_DB": str(paths.old_db),
            "NEW_DB": str(paths.new_db),
            "FBK": str(paths.archive),
            "LOG_BKP": str(paths.log_backup),
            "LOG_RTR": str(paths.log_restore),
        }

    async def _run_tool(
        self,
        job: RecoveryJob,
        key: str,
        templates: TemplateSet,
        stdin_text: Optional[str] = None,
    ) -> tuple[int, str]:
        template = self.store.active(templates)[key]
        if templates.use_custom:
            logger.info(f"[{job.id}] Running custom {key} template through the shell")
            line = render(template, self._context(job, shell=True))
            return await self._run_shell(line, stdin_text=stdin_text, timeout=self.tool_timeout)

        argv = render_argv(template, self._context(job, shell=False))
        logger.info(f"[{job.id}] Running {Path(argv[0]).name} for {key}")
        return await self._run(*argv, stdin_text=stdin_text, timeout=self.tool_timeout)

    def _tool_failed(self, rc: int, output: str, templates: TemplateSet) -> bool:
        if rc == -1:
            return True
        return classifier.is_failure(
            output, templates.error_heuristics, templates.success_markers
        )

    @staticmethod
    def _with_log(output: str, log_path: Path) -> str:
        # gbak -y sends its verbose lines to the log instead of the console.
        try:
            log = log_path.read_text(encoding="utf-8", errors="replace").strip()
        except OSError:
            return output
        return f"{output}\n{log}".strip() if log else output

    # -- reporting -------------------------------------------------------

    def _result(
        self,
        run: _WorkflowRun,
        success: bool,
        reason: str = "",
        failed_stage: Optional[WorkflowStage] = None,
        artifacts: Optional[dict[str, str]] = None,
    ) -> WorkflowResult:
        job = run.job
        title = TITLES[job.operation]
        if success:
            lines = [f"{title}: completed", f"Database: {job.db_path}"]
        else:
            where = (failed_stage or run.stage).value
            header = f"{title}: FAILED during {where}"
            if run.stage == WorkflowStage.ROLLED_BACK:
                header += " (rolled back)"
            lines = [header, f"Reason: {reason}"]
            lines.append(f"Database: {job.db_path}")

        if artifacts:
            lines.append(f"FBK: {artifacts['archive']}")
            lines.append("LOGs:")
            lines.append(f" - {artifacts['log_backup']}")
            lines.append(f" - {artifacts['log_restore']}")
            if artifacts.get("history"):
                lines.append(f"Previous database kept at: {artifacts['history']}")

        if run.caveats:
            lines.append("Caveats:")
            lines.extend(f" - {c}" for c in run.caveats)

        if run.outputs:
            lines.append("")
            lines.append(run.output)

        return WorkflowResult(
            operation=job.operation,
            success=success,
            stage=run.stage,
            failed_stage=failed_stage,
            report="\n".join(lines),
            output=run.output,
            caveats=list(run.caveats),
            artifacts=artifacts or {},
        )
