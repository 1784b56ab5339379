"""Shared test fixtures — sample diffs and temp git repos."""

from __future__ import annotations

import subprocess
import textwrap
from pathlib import Path

import pytest


@pytest.fixture
def sample_diff_added() -> str:
    """A newly added two-line file."""
    return textwrap.dedent("""\
        diff --git a/x b/x
        new file mode 100644
        index 0000000..e69de29
        --- /dev/null
        +++ b/x
        @@ -0,0 +1,2 @@
        +a
        +b
    """)


@pytest.fixture
def sample_diff_submodule() -> str:
    """A .gitmodules file and the submodule entry it declares."""
    return textwrap.dedent("""\
        diff --git a/.gitmodules b/.gitmodules
        new file mode 100644
        index 0000000..6abde17
        --- /dev/null
        +++ b/.gitmodules
        @@ -0,0 +1,3 @@
        +[submodule "gogs/docs-api"]
        +	path = gogs/docs-api
        +	url = https://github.com/gogs/docs-api.git
        diff --git a/gogs/docs-api b/gogs/docs-api
        new file mode 160000
        index 0000000..6b08f76
        --- /dev/null
        +++ b/gogs/docs-api
        @@ -0,0 +1 @@
        +Subproject commit 6b08f76a5313fa3d26859515b30aa17a5faa2807""")


@pytest.fixture
def sample_diff_changed() -> str:
    """One replaced line in the middle of a hunk."""
    return textwrap.dedent("""\
        diff --git a/pom.xml b/pom.xml
        index ee791be..9997571 100644
        --- a/pom.xml
        +++ b/pom.xml
        @@ -1,7 +1,7 @@
         <project>
           <name>demo</name>
           <modelVersion>4.0.0</modelVersion>
        -  <groupId>com.ambientideas</groupId>
        +  <groupId>com.github</groupId>
           <artifactId>egitdemo</artifactId>
           <packaging>jar</packaging>
           <version>1.0-SNAPSHOT</version>
    """)


@pytest.fixture
def sample_diff_binary() -> str:
    """A newly added binary file."""
    return textwrap.dedent("""\
        diff --git a/img/logo.png b/img/logo.png
        new file mode 100644
        index 0000000..2ce9188
        Binary files /dev/null and b/img/logo.png differ""")


@pytest.fixture
def sample_diff_deleted() -> str:
    """A deleted empty file."""
    return textwrap.dedent("""\
        diff --git a/fix.txt b/fix.txt
        deleted file mode 100644
        index e69de29..0000000""")


@pytest.fixture
def sample_diff_rename() -> str:
    """A pure rename with no content change."""
    return textwrap.dedent("""\
        diff --git a/runme.sh b/run.sh
        similarity index 100%
        rename from runme.sh
        rename to run.sh""")


@pytest.fixture
def sample_diff_rename_edit() -> str:
    """A rename with an edit."""
    return textwrap.dedent("""\
        diff --git a/old_name.py b/new_name.py
        similarity index 97%
        rename from old_name.py
        rename to new_name.py
        index abc1234..def5678 100644
        --- a/old_name.py
        +++ b/new_name.py
        @@ -1,1 +1,2 @@
         import os
        +# New line added after rename
    """)


@pytest.fixture
def sample_diff_mode_only() -> str:
    """Only the file mode changed, followed by a regular change."""
    return textwrap.dedent("""\
        diff --git a/script.sh b/script.sh
        old mode 100644
        new mode 100755
        diff --git a/app.py b/app.py
        index 1234567..abcdef0 100644
        --- a/app.py
        +++ b/app.py
        @@ -10,0 +11,1 @@
        +print("hi")
    """)


@pytest.fixture
def sample_diff_no_newline() -> str:
    """Markers for missing trailing newlines on both sides."""
    return textwrap.dedent("""\

        diff --git a/dir/file.txt b/dir/file.txt
        index b6fc4c620b67d95f953a5c1c1230aaab5db5a1b0..ab80bda5dd90d8b42be25ac2c7a071b722171f09 100644
        --- a/dir/file.txt
        +++ b/dir/file.txt
        @@ -1 +1,3 @@
        -hello
        \\ No newline at end of file
        +hello
        +
        +fdsfdsfds
        \\ No newline at end of file""")


@pytest.fixture
def sample_diff_two_hunks() -> str:
    """Two hunks in the same file, the first of them ten lines long."""
    return textwrap.dedent("""\
        diff --git a/.travis.yml b/.travis.yml
        index 335db7ea..51d7543e 100644
        --- a/.travis.yml
        +++ b/.travis.yml
        @@ -1,9 +1,6 @@
         sudo: false
         language: go
         go:
        -  - 1.4.x
        -  - 1.5.x
        -  - 1.6.x
           - 1.7.x
           - 1.8.x
           - 1.9.x
        @@ -12,6 +9,7 @@ go:
           - 1.12.x
           - 1.13.x
         matrix: {}
        +install: go get -v ./...
         script:
           - go get golang.org/x/tools/cmd/cover
           - go get github.com/smartystreets/goconvey
    """)


def make_multi_file_diff(count: int) -> str:
    """Build a diff touching *count* files, each adding one line."""
    parts = []
    for i in range(count):
        parts.append(
            f"diff --git a/file{i}.txt b/file{i}.txt\n"
            f"index 000000{i}..111111{i} 100644\n"
            f"--- a/file{i}.txt\n"
            f"+++ b/file{i}.txt\n"
            f"@@ -1,1 +1,2 @@\n"
            f" line\n"
            f"+added {i}\n"
        )
    return "".join(parts)


@pytest.fixture
def tmp_git_repo(tmp_path: Path) -> Path:
    """Create a temporary git repository with one commit."""
    subprocess.run(["git", "init", str(tmp_path)], capture_output=True, check=True)
    subprocess.run(
        ["git", "config", "user.email", "test@test.com"],
        cwd=tmp_path, capture_output=True, check=True,
    )
    subprocess.run(
        ["git", "config", "user.name", "Test"],
        cwd=tmp_path, capture_output=True, check=True,
    )
    readme = tmp_path / "README.md"
    readme.write_text("# Test\n")
    subprocess.run(["git", "add", "."], cwd=tmp_path, capture_output=True, check=True)
    subprocess.run(
        ["git", "commit", "-m", "init"],
        cwd=tmp_path, capture_output=True, check=True,
    )
    return tmp_path


def commit_all(repo: Path, message: str) -> None:
    """Stage everything in *repo* and commit it."""
    subprocess.run(["git", "add", "-A"], cwd=repo, capture_output=True, check=True)
    subprocess.run(["git", "commit", "-m", message], cwd=repo, capture_output=True, check=True)
