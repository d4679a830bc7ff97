import sys

from git_worktree_tui.cli.main import main

sys.exit(main())
