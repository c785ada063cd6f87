"""rearden - restic and rclone backup orchestration."""
