"""Basic page-view lookup using the built-in DI container.

Reads PAGEVIEW_PROFILE_ID / PAGEVIEW_CREDENTIALS_FILE from the environment.
"""

from pageview_service import DIContainer, Metric


def main() -> None:
    service = DIContainer.create_service()

    outcome = service.get_entity_series(["Main_Page", "Special:Search"], 7)
    print("Status:", outcome.status.value)
    for title, ok in outcome.success.items():
        if ok:
            print(title, outcome.value[title])
        else:
            print(title, "failed:", outcome.failures[title])

    site = service.get_aggregate_series(7, Metric.UNIQUE_PAGEVIEWS)
    print("Site uniques:", site.value if site.is_ok else site.messages)

    top = service.get_top_entities(limit=5)
    print("Top pages:", top.value if top.is_ok else top.messages)


if __name__ == "__main__":
    main()
