"""
Follow graph, aura and profile settings.
"""

import asyncio

import pytest

from conftest import ALICE, BOB
from errors import NotFoundError, SelfFollowError, ValidationError
from social import rank_for


class TestFollow:
    @pytest.mark.asyncio
    async def test_follow_updates_both_sides_and_aura(self, services):
        result = await services.social.toggle_follow(ALICE, BOB)
        assert result.following is True
        assert result.target_aura == 1

        alice = services.social.get_user(ALICE)
        bob = services.social.get_user(BOB)
        assert BOB in alice.following
        assert ALICE in bob.followers
        assert bob.aura == 1

    @pytest.mark.asyncio
    async def test_unfollow_restores_graph_and_keeps_aura(self, services):
        await services.social.toggle_follow(ALICE, BOB)
        result = await services.social.toggle_follow(ALICE, BOB)
        assert result.following is False

        alice = services.social.get_user(ALICE)
        bob = services.social.get_user(BOB)
        assert BOB not in alice.following
        assert ALICE not in bob.followers
        # follow then unfollow nets +1 aura
        assert bob.aura == 1

    @pytest.mark.asyncio
    async def test_refollow_adds_aura_again_without_duplicates(self, services):
        for _ in range(3):
            await services.social.toggle_follow(ALICE, BOB)
        bob = services.social.get_user(BOB)
        assert bob.followers == [ALICE]
        assert bob.aura == 2

    @pytest.mark.asyncio
    async def test_self_follow_rejected(self, services):
        with pytest.raises(SelfFollowError):
            await services.social.toggle_follow(ALICE, ALICE)
        assert services.social.get_user(ALICE).following == []

    @pytest.mark.asyncio
    async def test_unknown_target(self, services):
        with pytest.raises(NotFoundError):
            await services.social.toggle_follow(ALICE, "31337")

    @pytest.mark.asyncio
    async def test_concurrent_toggles_stay_symmetric(self, services):
        await asyncio.gather(*(services.social.toggle_follow(ALICE, BOB) for _ in range(4)))
        alice = services.social.get_user(ALICE)
        bob = services.social.get_user(BOB)
        assert (BOB in alice.following) == (ALICE in bob.followers)
        assert bob.aura == 2


class TestProfile:
    def test_ensure_user_creates_defaults(self, services):
        user = services.social.ensure_user("555", "newbie")
        assert user.nickname == "Anonymous"
        assert user.bio == "No bio set"
        assert user.privacy["allow_chats"] is True

    @pytest.mark.parametrize("nickname", ["a", "x" * 21, "   "])
    def test_invalid_nickname(self, services, nickname):
        with pytest.raises(ValidationError):
            services.social.set_nickname(ALICE, nickname)
        assert services.social.get_user(ALICE).nickname == "Anonymous"

    def test_nickname_is_trimmed(self, services):
        assert services.social.set_nickname(ALICE, "  Night Owl ") == "Night Owl"
        assert services.social.get_user(ALICE).nickname == "Night Owl"

    def test_bio_limits(self, services):
        with pytest.raises(ValidationError):
            services.social.set_bio(ALICE, "")
        with pytest.raises(ValidationError):
            services.social.set_bio(ALICE, "b" * 101)
        services.social.set_bio(ALICE, "b" * 100)
        assert services.social.get_user(ALICE).bio == "b" * 100

    def test_emoji_shows_in_display_name(self, services):
        services.social.set_nickname(ALICE, "Owl")
        services.social.set_emoji(ALICE, "🌙")
        assert services.social.get_user(ALICE).display_name == "🌙 Owl"

    def test_toggle_privacy(self, services):
        assert services.social.toggle_privacy(ALICE, "allow_chats") is False
        assert services.social.get_user(ALICE).privacy["allow_chats"] is False
        assert services.social.toggle_privacy(ALICE, "allow_chats") is True
        with pytest.raises(ValidationError):
            services.social.toggle_privacy(ALICE, "show_everything")

    def test_comments_per_page(self, services):
        assert services.social.set_comments_per_page(ALICE, 30) == 30
        assert services.social.get_user(ALICE).settings["comments_per_page"] == 30
        with pytest.raises(ValidationError):
            services.social.set_comments_per_page(ALICE, 7)

    def test_toggle_notifications(self, services):
        assert services.social.toggle_notifications(ALICE) is False
        assert services.social.get_user(ALICE).settings["notifications"] is False


class TestStats:
    @pytest.mark.asyncio
    async def test_counts_only_approved_confessions(self, services, published):
        await published(ALICE)
        services.lifecycle.limiter.reset()
        await services.lifecycle.submit(ALICE, "still waiting for review")
        stats = services.social.stats(ALICE)
        assert stats.confessions == 1
        assert stats.rank == "New User"

    def test_rank_thresholds(self):
        assert rank_for(0) == "New User"
        assert rank_for(11) == "Active Member"
        assert rank_for(101) == "Confession Legend"
