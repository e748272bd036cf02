from settings import settings
import psycopg

DDL = '''
CREATE TABLE IF NOT EXISTS event_log (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    sender TEXT NOT NULL,
    date TIMESTAMP WITH TIME ZONE NOT NULL,
    document JSONB NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_event_log_sender_date ON event_log (sender, date DESC);
'''

print('Connecting to', settings.db_url.rsplit('@', 1)[-1])
with psycopg.connect(settings.db_url, connect_timeout=5) as conn:
    with conn.cursor() as cur:
        cur.execute(DDL)
    conn.commit()
print('DDL applied')
