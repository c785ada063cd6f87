"""Static text emitted by rearden: the init file template and sample excludes."""

INIT_TEMPLATE = """\
# Configuration for rearden-backup (init.yaml)

# Required: directory holding locks, logs, local repositories and profiles
config_dir: /path/to/config/directory

# Required: directories to back up (a list, or one space-separated string)
backup_directories:
  - /home/user/documents
  - /etc

# Remote repository configuration - two options:

# Option 1: use a local repository with rclone for remote sync
# local_backup_repo: /path/to/config/directory/backups/default
rclone_remote: "remote:backup"
# rclone_config: /path/to/config/directory/rclone.conf
# sync_scope: config        # or "repository" to sync only the local repository

# Option 2: use a remote repository directly (push/pull are disabled)
# restic_repository: "s3:s3.amazonaws.com/my-bucket/restic"
# AWS credentials are read from AWS_ACCESS_KEY_ID / AWS_SECRET_ACCESS_KEY

# Backup retention in days (0 disables pruning)
retention_days: 30

# Password for the restic repository: set exactly one of these.
# A file named restic-password.txt inside config_dir is used when neither is set.
# restic_password: "your-secure-password"
# restic_password_file: /path/to/config/directory/restic-password.txt

# Extra exclusion globs (exclude.txt inside config_dir is also applied)
# exclude_patterns:
#   - "**/*.iso"

# Enable/disable features
enable_backup: true
enable_restore: true
enable_push: true
enable_pull: true
verify_backup: true
confirm_restore: true

# Number of session logs to keep under config_dir/logs
max_log_files: 10
"""

SAMPLE_EXCLUDES = """\
# Patterns to exclude from backup
**/.DS_Store
**/node_modules
**/.git
**/*.log
**/tmp
**/temp
**/.cache
"""
