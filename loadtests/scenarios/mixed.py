"""Mixed dispatch workload scenario.

Combines the partner, order and cancellation journeys with weights that
model a working day: partners come online steadily, customers book far more
often than they cancel. This is the recommended scenario for load baseline
testing.
"""

from locust import HttpUser, between

from loadtests.scenarios.dispatch import (
    BookAndDispatchJourney,
    OrderCancellationJourney,
    PartnerOnboardingJourney,
)


class MixedWorkloadUser(HttpUser):
    """Realistic mixed workload simulating a city's dispatch traffic.

    Partners (30%): registration and first position report, so dispatch
    has someone to pick.

    Orders (70%):
    - Book and dispatch: the main path
    - Paid cancellation: refund compensation
    """

    wait_time = between(1, 3)
    tasks = {
        PartnerOnboardingJourney: 3,
        BookAndDispatchJourney: 6,
        OrderCancellationJourney: 1,
    }
