from __future__ import annotations

# GH / API operations
GH_TIMEOUT_SECONDS = 60.0
# Release creation uploads every asset
GH_UPLOAD_TIMEOUT_SECONDS = 30 * 60.0

# Local git operations (tag, rev-parse)
GIT_TIMEOUT_SECONDS = 30.0

# Network-bound git operations (ls-remote, push)
GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0

# One matrix unit (cargo/cross build --release)
BUILD_TIMEOUT_SECONDS = 60 * 60.0

# Idempotent GH read retry policy
GH_READ_RETRY_ATTEMPTS = 3
GH_READ_RETRY_DELAY_SECONDS = 1.0
