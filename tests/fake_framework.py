from __future__ import annotations

import json
import shlex
from pathlib import Path
from typing import Any

FRAMEWORK_SOURCE = '''
import json
import sys
import time
from xml.sax.saxutils import quoteattr

suite_path, report_path = sys.argv[1], sys.argv[2]
spec = json.loads(open(suite_path).read())
time.sleep(spec.get("sleep", 0))
if spec.get("crash"):
    sys.exit(3)
cases = []
for index in range(spec.get("passes", 0)):
    cases.append('<testcase classname="suite" name="pass_%d"/>' % index)
for index in range(spec.get("pending", 0)):
    cases.append('<testcase classname="suite" name="skip_%d"><skipped/></testcase>' % index)
for failure in spec.get("failures", []):
    cases.append(
        '<testcase classname="suite" name=%s><failure message=%s/></testcase>'
        % (quoteattr(failure["name"]), quoteattr(failure["message"]))
    )
with open(report_path, "w") as handle:
    handle.write("<testsuites><testsuite>" + "".join(cases) + "</testsuite></testsuites>")
sys.exit(1 if spec.get("failures") else 0)
'''


def write_framework(tmp_path: Path) -> str:
    script = tmp_path / "fake_framework.py"
    script.write_text(FRAMEWORK_SOURCE)
    return "{python} " + shlex.quote(str(script)) + " {suite} {report}"


def write_suite(root: Path, name: str, **spec: Any) -> str:
    suites_dir = root / "suites"
    suites_dir.mkdir(parents=True, exist_ok=True)
    path = suites_dir / f"{name}.json"
    path.write_text(json.dumps(spec))
    return path.relative_to(root).as_posix()
