from pathlib import Path

import platformdirs

from .typed_path import AbsDir, AbsFile, RelFile

MIRROR_NAME: str = "repomirror"
MIRROR_REMOTE: str = "mirror"
GIT_EXECUTABLE: str = "git"
MIRROR_CONFIG_DIR: AbsDir = AbsDir(Path(platformdirs.user_config_dir(MIRROR_NAME)))
MIRROR_CONFIG_FILE: AbsFile = MIRROR_CONFIG_DIR / RelFile("config.json")

LOADING_SUFFIX: str = "..."
DONE_SUFFIX: str = "[done]"
FAILURE_SUFFIX: str = "[failed]"
