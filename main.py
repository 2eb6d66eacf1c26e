import logging

from scoreboard.config import LOG_LEVEL, MATCHES_DIR
from scoreboard.live_sync import InMemoryLiveMatchGateway, to_score_summary
from scoreboard.match_session import MatchSession
from scoreboard.models import MatchConfig, Side, SideProfile, default_match_config
from scoreboard.reconstruct import StateReconstructor
from scoreboard.storage import save_match


def win_game(session, state, side):
    for _ in range(4):
        state = session.score_point(state, side)
    return state


def main():
    logging.basicConfig(
        level=LOG_LEVEL,
        format="%(asctime)s %(levelname)-8s [%(name)s] %(message)s",
    )

    config = MatchConfig(
        side_a=SideProfile("Alice", "purple"),
        side_b=SideProfile("Bea", "green"),
        sets_to_win=2,
        use_advantage=True,
    )

    session = MatchSession()
    gateway = InMemoryLiveMatchGateway()
    reconstructor = StateReconstructor()

    state = session.create(config, match_id="demo-1")

    # Set 1: Alice 6-4
    for _ in range(4):
        state = win_game(session, state, Side.A)
        state = win_game(session, state, Side.B)
    state = win_game(session, state, Side.A)
    state = win_game(session, state, Side.A)

    # Set 2 under way: 30-0, then one point taken back
    state = session.score_point(state, Side.B)
    state = session.score_point(state, Side.B)
    state = session.undo(state)

    state = session.tick(state)
    gateway.sync_match("Demo Club", "demo-1", state, creator_uid="owner-1")

    print("Owner view:    ", to_score_summary(state), state.points)

    fetched = gateway.fetch_match("demo club", "demo-1")
    spectator = reconstructor.reconstruct(fetched.summary, fetched.realtime, default_match_config())
    print("Spectator view:", to_score_summary(spectator), spectator.points)

    no_realtime = reconstructor.reconstruct(fetched.summary, None, default_match_config())
    print("Summary only:  ", to_score_summary(no_realtime), no_realtime.points)

    path = MATCHES_DIR / "demo-1.json"
    save_match(path, state)
    print("Saved to", path)


if __name__ == "__main__":
    main()
