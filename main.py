#This file is for development purposes only

import logging
from getpass import getpass

from idea_board import AuthFlow, BoardSession
from idea_board_interface.store import StoreError
from supabase_store_impl import get_store


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    store = get_store(interactive=True)

    try:
        AuthFlow(store).sign_in(input("Email: ").strip(), getpass("Password: "))
    except StoreError as e:
        print(f"Error signing in: {e}")
        return

    with BoardSession(store, notify=lambda notice: print(f"[{notice.variant}] {notice.title}: {notice.description}")) as board:
        snapshot = board.snapshot
        for column in snapshot.columns:
            print(f"\n{column.name}")
            for idea in snapshot.ideas_in(column.id):
                voted = "*" if idea.user_has_voted else " "
                print(f" {voted} {idea.title}  ({idea.vote_count} votes, {idea.comment_count} comments)")

    store.sign_out()

if __name__ == "__main__":
    main()
