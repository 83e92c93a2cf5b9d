# bashwrap/executor.py
from __future__ import annotations
import random
import string
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

from bashwrap.errors import ExecutionError
from bashwrap.utils.log import log


@dataclass
class RunResult:
    job_id: str
    returncode: int
    stdout_path: Path
    stderr_path: Path

    @property
    def stdout(self) -> str:
        return self.stdout_path.read_text()

    @property
    def stderr(self) -> str:
        return self.stderr_path.read_text()


class WrapperExecutor:
    """Run a built wrapper locally, stdout/stderr go to <logdir>/<job_id>.stdout|.stderr"""

    def __init__(self, logdir: str | Path = "./bwlog"):
        self.logdir = Path(logdir)
        self.logdir.mkdir(parents=True, exist_ok=True)

    @staticmethod
    def new_job_id() -> str:
        return "".join(random.choice(string.ascii_letters) for _ in range(10))

    def run(self, wrapper: str | Path, args: Sequence[str] = (), job_id: Optional[str] = None,
            check: bool = True, cwd=None) -> RunResult:
        job_id = job_id or self.new_job_id()
        stdout_path = self.logdir / f"{job_id}.stdout"
        stderr_path = self.logdir / f"{job_id}.stderr"

        log(f"{job_id}: {wrapper} {' '.join(args)}")
        with open(stdout_path, "w") as out, open(stderr_path, "w") as err:
            process = subprocess.Popen([str(wrapper), *map(str, args)], stdout=out, stderr=err, cwd=cwd)
            ret = process.wait()

        result = RunResult(job_id, ret, stdout_path, stderr_path)
        if check and ret != 0:
            raise ExecutionError(f"job {job_id} failed with code {ret} (see {stderr_path})", returncode=ret)
        return result
