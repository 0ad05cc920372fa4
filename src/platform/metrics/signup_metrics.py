from prometheus_client import Counter, Gauge, Histogram


class SignupMetrics:
    """
    Signup System Core Metrics Collector

    Tracks reservation outcomes on the API side and job outcomes on the worker side.
    """

    def __init__(self):
        # ========== Booking Engine ==========
        self.reservation_requests = Counter(
            'signup_reservation_requests_total',
            'Reservation attempts by result',
            ['result'],  # result: success / SLOT_FULL / DUPLICATE_SIGNUP / ...
        )

        self.cancellation_requests = Counter(
            'signup_cancellation_requests_total',
            'Cancellation attempts by result',
            ['result'],
        )

        self.reservation_duration = Histogram(
            'signup_reservation_duration_seconds',
            'Time spent inside the locked reservation transaction',
            buckets=[0.005, 0.01, 0.05, 0.1, 0.2, 0.5, 1.0, 2.0, 5.0, 10.0],
        )

        self.side_effect_failures = Counter(
            'signup_side_effect_failures_total',
            'Post-commit mirror/enqueue failures',
            ['effect'],  # effect: mirror / enqueue
        )

        self.rate_limited_requests = Counter(
            'signup_rate_limited_requests_total', 'Requests rejected by the rate limiter'
        )

        # ========== Worker ==========
        self.jobs_processed = Counter(
            'signup_worker_jobs_total',
            'Jobs handled by outcome',
            ['kind', 'outcome'],  # outcome: success / skipped / retry / escalated
        )

        self.job_duration = Histogram(
            'signup_worker_job_duration_seconds',
            'Job handling duration',
            ['kind'],
            buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0],
        )

        self.in_flight_jobs = Gauge('signup_worker_in_flight_jobs', 'Jobs currently being handled')

    def record_reservation(self, *, result: str) -> None:
        self.reservation_requests.labels(result=result).inc()

    def record_cancellation(self, *, result: str) -> None:
        self.cancellation_requests.labels(result=result).inc()

    def record_side_effect_failure(self, *, effect: str) -> None:
        self.side_effect_failures.labels(effect=effect).inc()

    def record_job(self, *, kind: str, outcome: str) -> None:
        self.jobs_processed.labels(kind=kind, outcome=outcome).inc()


# Global metrics instance
metrics = SignupMetrics()
