"""
Postgres schema and functions backing ``SupabaseRepository``.

Apply in order with the Supabase SQL editor or ``psql``. Every multi-row write
is a plpgsql function so PostgREST runs it as a single transaction.
"""

profiles_sql = """
CREATE TABLE profiles (
    id UUID PRIMARY KEY REFERENCES auth.users(id) ON DELETE CASCADE,
    username TEXT NOT NULL,
    username_lowercase TEXT NOT NULL UNIQUE,
    avatar TEXT,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),

    CONSTRAINT username_lowercase_matches CHECK (username_lowercase = lower(username))
);
"""

conversations_sql = """
CREATE TABLE conversations (
    id TEXT PRIMARY KEY DEFAULT gen_random_uuid()::text,
    creator_id UUID REFERENCES profiles(id) ON DELETE SET NULL,

    -- sorted member ids joined by ',' (NULL for the global room)
    member_key TEXT,

    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT now()
);

CREATE INDEX conversations_member_key_idx ON conversations (member_key);

INSERT INTO conversations (id) VALUES ('global');
"""

conversation_members_sql = """
CREATE TABLE conversation_members (
    conversation_id TEXT NOT NULL REFERENCES conversations(id) ON DELETE CASCADE,
    user_id UUID NOT NULL REFERENCES profiles(id) ON DELETE CASCADE,
    created_at TIMESTAMPTZ NOT NULL DEFAULT now(),

    PRIMARY KEY (conversation_id, user_id)
);

CREATE INDEX conversation_members_user_idx ON conversation_members (user_id);
"""

messages_sql = """
CREATE TABLE messages (
    id BIGINT GENERATED ALWAYS AS IDENTITY PRIMARY KEY,
    conversation_id TEXT NOT NULL REFERENCES conversations(id) ON DELETE CASCADE,
    author_id UUID REFERENCES profiles(id) ON DELETE SET NULL,
    content TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL
);

CREATE INDEX messages_conversation_created_idx ON messages (conversation_id, created_at, id);
"""

member_key_function_sql = """
CREATE OR REPLACE FUNCTION conversation_member_key(p_conversation_id TEXT)
RETURNS TEXT LANGUAGE sql STABLE AS $$
    SELECT string_agg(user_id::text, ',' ORDER BY user_id::text COLLATE "C")
    FROM conversation_members
    WHERE conversation_id = p_conversation_id;
$$;
"""

create_profile_function_sql = """
CREATE OR REPLACE FUNCTION create_profile(p_id UUID, p_username TEXT, p_avatar TEXT)
RETURNS profiles LANGUAGE plpgsql AS $$
DECLARE
    v_profile profiles;
BEGIN
    INSERT INTO profiles (id, username, username_lowercase, avatar)
    VALUES (p_id, p_username, lower(p_username), p_avatar)
    RETURNING * INTO v_profile;

    INSERT INTO conversation_members (conversation_id, user_id)
    VALUES ('global', p_id);

    RETURN v_profile;
END;
$$;
"""

create_conversation_function_sql = """
CREATE OR REPLACE FUNCTION create_conversation(
    p_creator_id UUID, p_member_ids UUID[], p_member_key TEXT
)
RETURNS conversations LANGUAGE plpgsql AS $$
DECLARE
    v_conversation conversations;
BEGIN
    INSERT INTO conversations (creator_id, member_key)
    VALUES (p_creator_id, p_member_key)
    RETURNING * INTO v_conversation;

    INSERT INTO conversation_members (conversation_id, user_id)
    SELECT v_conversation.id, member_id FROM unnest(p_member_ids) AS member_id;

    RETURN v_conversation;
END;
$$;
"""

add_conversation_member_function_sql = """
CREATE OR REPLACE FUNCTION add_conversation_member(p_conversation_id TEXT, p_user_id UUID)
RETURNS void LANGUAGE plpgsql AS $$
BEGIN
    PERFORM 1 FROM conversations WHERE id = p_conversation_id FOR UPDATE;
    IF NOT FOUND THEN
        RAISE EXCEPTION 'conversation % not found', p_conversation_id USING ERRCODE = 'P0002';
    END IF;

    INSERT INTO conversation_members (conversation_id, user_id)
    VALUES (p_conversation_id, p_user_id);

    IF p_conversation_id <> 'global' THEN
        UPDATE conversations
        SET member_key = conversation_member_key(p_conversation_id)
        WHERE id = p_conversation_id;
    END IF;
END;
$$;
"""

leave_conversation_function_sql = """
CREATE OR REPLACE FUNCTION leave_conversation(p_conversation_id TEXT, p_user_id UUID)
RETURNS boolean LANGUAGE plpgsql AS $$
DECLARE
    v_members INTEGER;
BEGIN
    PERFORM 1 FROM conversations WHERE id = p_conversation_id FOR UPDATE;
    IF NOT FOUND THEN
        RAISE EXCEPTION 'conversation % not found', p_conversation_id USING ERRCODE = 'P0002';
    END IF;

    SELECT count(*) INTO v_members
    FROM conversation_members WHERE conversation_id = p_conversation_id;

    IF v_members <= 1 THEN
        DELETE FROM conversations WHERE id = p_conversation_id;
        RETURN true;
    END IF;

    DELETE FROM conversation_members
    WHERE conversation_id = p_conversation_id AND user_id = p_user_id;

    UPDATE conversations
    SET member_key = conversation_member_key(p_conversation_id)
    WHERE id = p_conversation_id;

    RETURN false;
END;
$$;
"""

post_message_function_sql = """
CREATE OR REPLACE FUNCTION post_message(
    p_conversation_id TEXT, p_author_id UUID, p_content TEXT
)
RETURNS messages LANGUAGE plpgsql AS $$
DECLARE
    v_previous TIMESTAMPTZ;
    v_created_at TIMESTAMPTZ;
    v_message messages;
BEGIN
    -- Row lock serialises posts per conversation so created_at order is commit order.
    SELECT updated_at INTO v_previous
    FROM conversations WHERE id = p_conversation_id FOR UPDATE;
    IF NOT FOUND THEN
        RAISE EXCEPTION 'conversation % not found', p_conversation_id USING ERRCODE = 'P0002';
    END IF;

    v_created_at := greatest(clock_timestamp(), v_previous + interval '1 microsecond');

    INSERT INTO messages (conversation_id, author_id, content, created_at)
    VALUES (p_conversation_id, p_author_id, p_content, v_created_at)
    RETURNING * INTO v_message;

    UPDATE conversations SET updated_at = v_created_at WHERE id = p_conversation_id;

    RETURN v_message;
END;
$$;
"""

SCHEMA = [
    profiles_sql,
    conversations_sql,
    conversation_members_sql,
    messages_sql,
    member_key_function_sql,
    create_profile_function_sql,
    create_conversation_function_sql,
    add_conversation_member_function_sql,
    leave_conversation_function_sql,
    post_message_function_sql,
]
