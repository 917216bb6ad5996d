from sgh.core.model import Block, EntryKind, LocalForward
from sgh.core.resolve import (
    apply_patterns,
    compile_pattern,
    default_hostnames,
    is_wildcard,
    merge_identical,
    pattern_matches,
    resolve,
    spread,
)

USER = EntryKind.USER
HOSTNAME = EntryKind.HOSTNAME
PORT = EntryKind.PORT
PROXY = EntryKind.PROXY_COMMAND
FORWARD = EntryKind.LOCAL_FORWARD


def by_name(hosts):
    return {h.name: h for h in hosts}


def test_is_wildcard():
    assert is_wildcard("*.example.com")
    assert is_wildcard("web?")
    assert is_wildcard("!db")
    assert not is_wildcard("db.example.com")


def test_compile_pattern_star_and_question_mark():
    assert pattern_matches(compile_pattern("*.corp"), "api.corp")
    assert not pattern_matches(compile_pattern("*.corp"), "api.corp.net")
    assert pattern_matches(compile_pattern("web?.corp"), "web1.corp")
    assert not pattern_matches(compile_pattern("web?.corp"), "web10.corp")


def test_compile_pattern_dot_is_literal():
    assert not pattern_matches(compile_pattern("db.*"), "dbx")
    assert not pattern_matches(compile_pattern("web?.corp"), "web1xcorp")


def test_compile_pattern_negation():
    regex, negated = compile_pattern("!db.example.com")
    assert negated
    assert regex.match("db.example.com")
    assert not pattern_matches((regex, negated), "db.example.com")
    assert pattern_matches((regex, negated), "web.example.com")


def test_compile_pattern_other_regex_characters_are_literal():
    assert pattern_matches(compile_pattern("a+b*"), "a+bc")
    assert not pattern_matches(compile_pattern("a+b*"), "aabc")
    compile_pattern("host[1*")  # must not raise


def test_spread_clones_entries_per_pattern():
    block = Block.from_entries(["a", "b", "c"], [(USER, "x")])
    spread_blocks = spread([block])
    assert [b.patterns for b in spread_blocks] == [["a"], ["b"], ["c"]]
    assert all(b.get(USER) == "x" for b in spread_blocks)
    spread_blocks[0].entries[USER] = "changed"
    assert spread_blocks[1].get(USER) == "x"
    assert block.patterns == ["a", "b", "c"]


def test_spread_keeps_block_order_and_empty_blocks():
    blocks = [Block(patterns=["x", "y"]), Block(patterns=[]), Block(patterns=["z"])]
    assert [b.patterns for b in spread(blocks)] == [["x"], ["y"], [], ["z"]]


def test_spread_then_resolve_keeps_each_host():
    hosts = resolve([(["a", "b", "c"], [(USER, "x")])])
    # each defaulted to its own Hostname, so nothing merges
    assert [h.name for h in hosts] == ["a", "b", "c"]
    assert all(h.user == "x" for h in hosts)


def test_wildcard_does_not_overwrite_explicit_entry():
    hosts = resolve(
        [
            (["*.example.com"], [(USER, "admin")]),
            (["db.example.com"], [(USER, "root")]),
        ]
    )
    assert len(hosts) == 1
    assert hosts[0].name == "db.example.com"
    assert hosts[0].user == "root"


def test_first_matching_pattern_wins():
    hosts = resolve(
        [
            (["api.corp"], []),
            (["*.corp"], [(USER, "svc")]),
            (["*"], [(USER, "root"), (PORT, "2222")]),
        ]
    )
    assert hosts[0].user == "svc"
    assert hosts[0].port == "2222"


def test_negated_pattern_applies_to_non_matching_hosts():
    hosts = by_name(
        resolve(
            [
                (["!db.example.com"], [(PORT, "22")]),
                (["db.example.com"], []),
                (["web.example.com"], []),
            ]
        )
    )
    assert hosts["db.example.com"].port is None
    assert hosts["web.example.com"].port == "22"


def test_wildcard_blocks_are_never_targets_and_are_removed():
    blocks = spread(
        [
            Block.from_entries(["*"], [(USER, "root")]),
            Block.from_entries(["web*"], [(PORT, "8022")]),
            Block.from_entries(["nothing-matches-*"], [(PORT, "1")]),
            Block.from_entries(["web1"], []),
        ]
    )
    applied = apply_patterns(blocks)
    assert [b.patterns for b in applied] == [["web1"]]
    assert applied[0].entries == {USER: "root", PORT: "8022"}
    # source blocks untouched
    assert blocks[1].entries == {PORT: "8022"}


def test_pattern_local_forwards_are_appended():
    applied = apply_patterns(
        [
            Block.from_entries(["*"], [(FORWARD, "8080 localhost:80")]),
            Block.from_entries(["app"], [(FORWARD, "8080 localhost:80"), (FORWARD, "9000 db:5432")]),
        ]
    )
    assert applied[0].local_forwards == [
        LocalForward("8080", "localhost", "80"),
        LocalForward("9000", "db", "5432"),
        LocalForward("8080", "localhost", "80"),
    ]


def test_pattern_derived_hostname_is_honored():
    hosts = resolve(
        [
            (["bastion"], []),
            (["bas*"], [(HOSTNAME, "10.0.0.1")]),
        ]
    )
    assert hosts[0].destination == "10.0.0.1"


def test_default_hostname_uses_name():
    hosts = resolve([(["myhost"], [])])
    assert hosts[0].destination == "myhost"


def test_default_hostnames_leaves_explicit_and_empty_blocks():
    blocks = [
        Block.from_entries(["a"], [(HOSTNAME, "a.example.com")]),
        Block(patterns=[]),
    ]
    defaulted = default_hostnames(blocks)
    assert defaulted[0].get(HOSTNAME) == "a.example.com"
    assert defaulted[1].get(HOSTNAME) is None


def test_defaulting_runs_before_merge():
    # identical apart from the defaulted destination
    hosts = resolve([(["a"], [(USER, "u")]), (["b"], [(USER, "u")])])
    assert [h.name for h in hosts] == ["a", "b"]
    assert [h.destination for h in hosts] == ["a", "b"]


def test_identical_hosts_merge_into_first():
    hosts = resolve(
        [
            (["foo"], [(HOSTNAME, "gw.example.com"), (USER, "x")]),
            (["bar"], [(HOSTNAME, "gw.example.com"), (USER, "x")]),
        ]
    )
    assert len(hosts) == 1
    assert hosts[0].name == "foo"
    assert hosts[0].aliases == ("bar",)


def test_host_placeholder_blocks_merge():
    entries = [(HOSTNAME, "gw.example.com"), (PROXY, "nc %h 22")]
    hosts = resolve([(["foo"], entries), (["bar"], entries)])
    assert [h.name for h in hosts] == ["foo", "bar"]
    assert all(h.aliases == () for h in hosts)


def test_merge_collects_patterns_and_forwards_in_order():
    blocks = [
        Block.from_entries(["a"], [(HOSTNAME, "h"), (FORWARD, "1 x:1")]),
        Block.from_entries(["other"], [(HOSTNAME, "elsewhere")]),
        Block.from_entries(["b"], [(HOSTNAME, "h"), (FORWARD, "2 x:2")]),
        Block.from_entries(["c"], [(HOSTNAME, "h"), (FORWARD, "3 x:3")]),
    ]
    merged = merge_identical(blocks)
    assert [b.patterns for b in merged] == [["a", "b", "c"], ["other"]]
    assert [lf.local_port for lf in merged[0].local_forwards] == ["1", "2", "3"]
    # inputs untouched
    assert blocks[0].patterns == ["a"]


def test_merge_ignores_local_forward_differences():
    merged = merge_identical(
        [
            Block.from_entries(["a"], [(HOSTNAME, "h")]),
            Block.from_entries(["b"], [(HOSTNAME, "h"), (FORWARD, "2 x:2")]),
        ]
    )
    assert len(merged) == 1
    assert merged[0].local_forwards == [LocalForward("2", "x", "2")]


def test_malformed_local_forward_is_dropped():
    hosts = resolve([(["a"], [(FORWARD, "8888"), (FORWARD, "8888 localhost:9999")])])
    assert hosts[0].local_forwards == (LocalForward("8888", "localhost", "9999"),)


def test_end_to_end_corp_scenario():
    hosts = resolve(
        [
            (["*.corp"], [(USER, "svc")]),
            (["api.corp", "www.corp"], []),
        ]
    )
    assert [h.name for h in hosts] == ["api.corp", "www.corp"]
    for host in hosts:
        assert host.user == "svc"
        assert host.destination == host.name
        assert host.local_forwards == ()


def test_resolve_does_not_mutate_input_blocks():
    blocks = [
        Block.from_entries(["*"], [(USER, "root")]),
        Block.from_entries(["a", "b"], [(HOSTNAME, "same")]),
    ]
    resolve(blocks)
    assert blocks[1].patterns == ["a", "b"]
    assert blocks[1].entries == {HOSTNAME: "same"}


def test_resolve_is_idempotent():
    blocks = [
        (["*"], [(EntryKind.SERVER_ALIVE_INTERVAL, "30")]),
        (["web1", "web2"], [(HOSTNAME, "lb.example.com"), (USER, "deploy")]),
        (["db"], [(PORT, "5432"), (FORWARD, "5432 localhost:5432")]),
        (["jump"], [(PROXY, "nc %h 22")]),
        (["jump2"], [(HOSTNAME, "jump"), (PROXY, "nc %h 22")]),
    ]
    first = resolve(blocks)
    second = resolve([h.to_block() for h in first])
    assert second == first
    assert by_name(first)["web1"].aliases == ("web2",)
    assert by_name(first)["web1"].options == (("ServerAliveInterval", "30"),)


def test_resolve_is_noop_on_resolved_blocks():
    blocks = [
        Block.from_entries(["a"], [(HOSTNAME, "a.example.com"), (USER, "u")]),
        Block.from_entries(["b"], [(HOSTNAME, "b.example.com")]),
    ]
    hosts = resolve(blocks)
    assert [h.to_block() for h in hosts] == blocks


def test_resolve_empty_input():
    assert resolve([]) == []
