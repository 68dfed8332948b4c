# tests/cache/test_cache_store.py
"""
roleman/cache/store.py 단위 테스트

CacheStore TTL, 손상 파일 처리, 원자적 쓰기, 네임스페이스 분리 테스트.
"""

import json
import stat

from conftest import FakeClock

from roleman.cache.store import CacheStore, StoredEntry, namespace_dir_name

# =============================================================================
# namespace_dir_name 테스트
# =============================================================================


class TestNamespaceDirName:
    """namespace_dir_name 함수 테스트"""

    def test_readable_prefix(self):
        """사람이 읽을 수 있는 접두사 유지"""
        assert namespace_dir_name("work").startswith("work-")

    def test_unsafe_characters_replaced(self):
        """경로 구분자 등은 치환"""
        name = namespace_dir_name("../evil/identity")
        assert "/" not in name
        assert not name.startswith(".")

    def test_distinct_identities_do_not_collide(self):
        """정규화 결과가 같아도 해시로 구분"""
        assert namespace_dir_name("a/b") != namespace_dir_name("a_b")


# =============================================================================
# StoredEntry 테스트
# =============================================================================


class TestStoredEntry:
    """StoredEntry 테스트"""

    def test_no_expiry(self):
        entry = StoredEntry(value=1, stored_at=0.0, expires_at=None)
        assert entry.is_expired(10**12) is False

    def test_expired_at_boundary(self):
        """만료 시각과 같으면 만료"""
        entry = StoredEntry(value=1, stored_at=0.0, expires_at=100.0)
        assert entry.is_expired(99.9) is False
        assert entry.is_expired(100.0) is True

    def test_age(self):
        entry = StoredEntry(value=1, stored_at=100.0, expires_at=None)
        assert entry.age(160.0) == 60.0
        assert entry.age(50.0) == 0.0


# =============================================================================
# CacheStore 테스트
# =============================================================================


class TestCacheStore:
    """CacheStore 테스트"""

    def test_get_missing(self, store):
        """없는 키는 None"""
        assert store.get("nothing") is None

    def test_put_and_get(self, store):
        """저장 후 조회"""
        store.put("catalog", {"entries": [1, 2]}, ttl=60)
        assert store.get("catalog") == {"entries": [1, 2]}

    def test_ttl_expiry(self, store, clock):
        """TTL 이 지나면 캐시 미스"""
        store.put("token", "abc", ttl=60)

        clock.advance(59)
        assert store.get("token") == "abc"

        clock.advance(1)
        assert store.get("token") is None

    def test_include_expired(self, store, clock):
        """include_expired 면 만료 항목도 반환"""
        store.put("token", "abc", ttl=10)
        clock.advance(20)

        entry = store.get_entry("token", include_expired=True)
        assert entry is not None
        assert entry.is_expired(clock()) is True

    def test_no_ttl_never_expires(self, store, clock):
        store.put("registration", {"id": 1}, ttl=None)
        clock.advance(10**9)
        assert store.get("registration") == {"id": 1}

    def test_stored_at_recorded(self, store, clock):
        store.put("catalog", [], ttl=100)
        entry = store.get_entry("catalog")
        assert entry.stored_at == clock()
        assert entry.expires_at == clock() + 100

    def test_corrupt_file_is_miss(self, store):
        """손상된 파일은 예외 없이 캐시 미스"""
        store.directory.mkdir(parents=True)
        (store.directory / "catalog.json").write_text("{not json", encoding="utf-8")

        assert store.get("catalog") is None

    def test_wrong_shape_is_miss(self, store):
        """필수 필드가 없으면 캐시 미스"""
        store.directory.mkdir(parents=True)
        (store.directory / "catalog.json").write_text(json.dumps({"value": 1}), encoding="utf-8")

        assert store.get("catalog") is None

    def test_put_replaces_whole_file(self, store):
        """쓰기는 파일 전체를 교체하고 임시 파일을 남기지 않음"""
        store.put("catalog", "first", ttl=60)
        store.put("catalog", "second", ttl=60)

        assert store.get("catalog") == "second"
        assert [p.name for p in store.directory.iterdir()] == ["catalog.json"]

    def test_file_permissions(self, store):
        """캐시 파일은 소유자만 읽기/쓰기"""
        store.put("token", "secret", ttl=60)
        mode = stat.S_IMODE((store.directory / "token.json").stat().st_mode)
        assert mode == 0o600

    def test_invalidate(self, store):
        store.put("token", "abc", ttl=60)
        store.invalidate("token")
        assert store.get("token") is None

    def test_invalidate_missing_is_noop(self, store):
        store.invalidate("nothing")

    def test_namespaces_are_isolated(self, tmp_path):
        """identity 가 다르면 서로의 캐시를 보지 않음"""
        clock = FakeClock()
        work = CacheStore("work", root=tmp_path, clock=clock)
        personal = CacheStore("personal", root=tmp_path, clock=clock)

        work.put("catalog", "work-catalog", ttl=60)
        assert personal.get("catalog") is None
        assert work.directory != personal.directory

    def test_keys_differing_in_unsafe_characters(self, store):
        """치환하면 같아지는 키도 서로 다른 파일에 저장"""
        store.put("creds-111111111111-Dev+Ops", "plus", ttl=60)
        store.put("creds-111111111111-Dev_Ops", "underscore", ttl=60)
        store.put("creds-111111111111-Dev@Ops", "at", ttl=60)

        assert store.get("creds-111111111111-Dev+Ops") == "plus"
        assert store.get("creds-111111111111-Dev_Ops") == "underscore"
        assert store.get("creds-111111111111-Dev@Ops") == "at"
        assert len(list(store.directory.iterdir())) == 3

        store.invalidate("creds-111111111111-Dev+Ops")
        assert store.get("creds-111111111111-Dev_Ops") == "underscore"

    def test_default_root_uses_xdg_cache(self, isolated_home):
        """root 를 생략하면 XDG 캐시 디렉토리"""
        cache = CacheStore("work")
        assert cache.root == isolated_home / ".cache" / "roleman"
