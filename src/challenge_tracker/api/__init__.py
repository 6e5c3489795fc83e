"""HTTP API for the Challenge Tracker."""
