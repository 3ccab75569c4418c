import logging
logger = logging.getLogger(__name__)

# Callback lists
FIRST_INPUT_HOOK = 'first-input-hook'
FIRST_FILE_HOOK = 'first-file-hook'
FIRST_BUFFER_HOOK = 'first-buffer-hook'
PACKAGE_MANAGER_LOAD_HOOK = 'package-manager-load-hook'
LOCAL_VARS_HOOK_SUFFIX = '-local-vars-hook'

# Host events
PRE_COMMAND = 'pre-command'
POST_COMMAND = 'post-command'
FIND_FILE = 'find-file'
DIRED_INITIAL_POSITION = 'dired-initial-position'
SWITCH_BUFFER = 'switch-buffer'
AFTER_CHANGE_MAJOR_MODE = 'after-change-major-mode'
AFTER_INIT = 'after-init'
STARTUP_COMPLETE = 'startup-complete'
WINDOW_SETUP = 'window-setup'

# Bootstrap lifecycle
BOOTSTRAP_STARTED = 'BOOTSTRAP_STARTED'
BOOTSTRAP_COMPLETED = 'BOOTSTRAP_COMPLETED'

TRIGGER_SOURCES = {
    FIRST_INPUT_HOOK: (PRE_COMMAND,),
    FIRST_FILE_HOOK: (FIND_FILE, DIRED_INITIAL_POSITION),
    FIRST_BUFFER_HOOK: (FIND_FILE, SWITCH_BUFFER),
}


def local_vars_hook(mode: str) -> str:
    return f'{mode}{LOCAL_VARS_HOOK_SUFFIX}'
