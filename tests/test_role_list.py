from srtlive.role_list import RoleList


class FakeRole:
    def __init__(self, name):
        self.name = name
        self.uninit_calls = 0

    def uninit(self):
        self.uninit_calls += 1


def test_pop_returns_roles_in_push_order():
    roles = RoleList()
    a, b = FakeRole("a"), FakeRole("b")
    roles.push(a)
    roles.push(b)
    assert len(roles) == 2
    assert roles.pop() is a
    assert roles.pop() is b
    assert roles.pop() is None


def test_push_none_is_ignored():
    roles = RoleList()
    roles.push(None)
    assert len(roles) == 0
    assert roles.pop() is None


def test_erase_uninits_every_role_and_empties():
    roles = RoleList()
    members = [FakeRole(str(i)) for i in range(3)]
    for role in members:
        roles.push(role)
    roles.erase()
    assert [role.uninit_calls for role in members] == [1, 1, 1]
    assert len(roles) == 0
    assert roles.pop() is None


def test_popped_role_is_not_erased():
    roles = RoleList()
    kept, dropped = FakeRole("kept"), FakeRole("dropped")
    roles.push(kept)
    roles.push(dropped)
    assert roles.pop() is kept
    roles.erase()
    assert kept.uninit_calls == 0
    assert dropped.uninit_calls == 1