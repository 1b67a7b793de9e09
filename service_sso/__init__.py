"""Single sign-on hand-off service for the 254Carbon Access Layer."""
