"""Movie and showtime catalog synchronisation for cinenews.be listings."""
