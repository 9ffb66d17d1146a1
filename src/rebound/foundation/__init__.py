"""Foundation: errors, configuration, the retry decorator and test helpers."""
