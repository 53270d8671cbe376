"""Release selection and compatibility-test orchestration."""
